"""
L0 Data — static tables.  No I/O, no logic beyond lookups.
"""

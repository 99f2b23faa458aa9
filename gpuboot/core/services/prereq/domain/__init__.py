"""
L1 Domain — pure decision logic.

No I/O, no subprocess.
"""

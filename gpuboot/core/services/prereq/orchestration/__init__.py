"""
L5 Orchestration — top-level coordinators.
"""

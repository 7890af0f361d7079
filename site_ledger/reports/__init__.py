"""
Document generators fed by project reports.
"""

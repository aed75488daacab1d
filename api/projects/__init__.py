"""
Resume projects and the per-user project metadata kept in sync with them.
"""

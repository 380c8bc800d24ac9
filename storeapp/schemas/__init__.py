"""
Request and response schemas, one module per API area.
"""

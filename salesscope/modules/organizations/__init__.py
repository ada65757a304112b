# salesscope/modules/organizations/__init__.py

"""
Organizations Module - tenants and their members.

Every dataset belongs to exactly one organization; users upload datasets on
behalf of the organization they belong to.
"""

"""
HotLunchHub Functions Service
Privileged user-lifecycle functions (create-user, delete-user)
"""

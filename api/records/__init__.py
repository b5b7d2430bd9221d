"""
Quotes and comments.

Both resources share one record shape, so one repository and one router
factory serve every kind listed in `records/kinds.py`.
"""

"""Domain registry application package.

Registers domains (title, URL, description, mapper spreadsheet and image)
in MongoDB with their files kept in a local upload directory.
"""

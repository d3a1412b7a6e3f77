"""
The `database` package is the persistence side of the application:
configuration, ORM entities, DAOs and the core operations built on them.
"""

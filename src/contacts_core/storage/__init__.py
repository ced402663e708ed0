"""
SQLite storage.

Components:
- database.py: ContactsDatabase (connection factory, transactions, schema, photo dir)
- raw_contacts.py: RawContactStore (raw contact names, aggregation results)
"""

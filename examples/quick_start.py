#!/usr/bin/env python3
# Example usage of embedded_json_db_engine

from embedded_json_db_engine import Database, TransactionError

def main() -> None:
    # Create/open database file; every mutation is written immediately (auto-commit)
    db = Database("demo.json", verbose=True, default_values={"users": {"active": True}})

    db.insert("posts", {"id": 1, "title": "LowDB in Python", "views": 100})
    db.insert("posts", {"id": 2, "title": "Data Management", "views": 250})
    db.bulk_insert("users", [{"name": "Alice", "age": 30}, {"name": "Bob"}])

    # Condition strings compare fields with literals, joined by & and |
    print("Popular:", db.query("posts", "views > 200 | id == 1"))
    print("Older than 18:", db.filter("users", lambda r: r["age"] > 18))

    # Shallow merge of the new fields into every matching record
    db.update("posts", "id", 1, {"views": 150})

    # Reject records whose age is not numeric
    db.set_schema("users", {"name": "character", "age": "numeric"})

    try:
        db.transaction(lambda: (db.insert("users", {"name": "Zlatan", "age": 40}),
                                db.insert("users", {"name": "Neymar", "age": "28"})))
    except TransactionError as e:
        print("Rolled back:", e)
    print("Users:", db.count("users"))

    db.backup("demo-backup.json")

if __name__ == "__main__":
    main()

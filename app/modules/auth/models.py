# Table store table: users
# Operations are handled through app.database.table_store in service.py

"""
Expected users table structure (resolved by name through the store's table catalog):
- id: text/uuid (primary key, assigned by the store)
- email: text (unique, not null) - case-sensitive as stored
- password_hash: text (not null) - argon2id encoded hash, or a legacy fixed-salt SHA-256 hex digest
- full_name: text (nullable)
- avatar_url: text (nullable)
- created_at: timestamp, ISO-8601 (not null)
- updated_at: timestamp, ISO-8601 (not null, >= created_at)

password_hash never leaves AuthService; see sanitize_user().
"""

USERS_COLUMNS = (
    "id",
    "email",
    "password_hash",
    "full_name",
    "avatar_url",
    "created_at",
    "updated_at",
)

PRIVATE_COLUMNS = ("password_hash",)

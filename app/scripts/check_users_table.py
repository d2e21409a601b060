"""
Check Users Table Script
Resolves the users table through the store's table catalog and reports any
expected column missing from its schema. Run before first deploy, or after
changing the store, to catch a broken auth setup early.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.core.exceptions import AuthServiceError
from app.database.table_store import TableStoreClient, get_table_store
from app.modules.auth.models import USERS_COLUMNS
from typing import List
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def missing_columns(store: TableStoreClient) -> List[str]:
    """Columns the auth service relies on that the users table schema does not declare"""
    table = store.find_users_table()
    declared = set(table.column_names)
    if not declared:
        # Catalog returned no schema; nothing to compare against
        logger.warning(f"Table '{table.name}' ({table.id}) has no column schema in the catalog")
        return []
    # The store assigns id itself and may leave it out of the declared columns
    return [c for c in USERS_COLUMNS if c not in declared and c != "id"]


def main():
    """Resolve the users table and verify its columns"""
    try:
        store = get_table_store()
        logger.info("Checking users table...")

        missing = missing_columns(store)
        if missing:
            logger.error(f"Users table is missing columns: {', '.join(missing)}")
            sys.exit(1)

        logger.info(f"Users table '{store.resolve_users_table()}' is ready")
    except AuthServiceError as e:
        logger.error(f"Error checking users table: {e.detail}")
        sys.exit(1)


if __name__ == "__main__":
    main()

import logging
from contextlib import contextmanager
from pathlib import Path

import mysql.connector

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name('schema.sql')


def get_db_connection(db_config):
    return mysql.connector.connect(**db_config)


# ------------------------
# Context Managers for DB
# ------------------------
@contextmanager
def db_cursor(db_config, dictionary=False):
    """Read-only cursor; connection is always released."""
    conn = get_db_connection(db_config)
    cursor = conn.cursor(dictionary=dictionary)
    try:
        yield cursor
    finally:
        cursor.close()
        conn.close()


@contextmanager
def db_transaction(db_config, dictionary=False):
    """Cursor inside one transaction: commit on success, rollback on any error."""
    conn = get_db_connection(db_config)
    cursor = conn.cursor(dictionary=dictionary)
    try:
        conn.start_transaction()
        yield cursor
        conn.commit()
    except Exception:
        try:
            conn.rollback()
        except mysql.connector.Error as err:
            logger.error(f"Rollback failed: {err}")
        raise
    finally:
        cursor.close()
        conn.close()


def init_schema(db_config):
    statements = [s.strip() for s in SCHEMA_PATH.read_text(encoding='utf-8').split(';')]
    with db_transaction(db_config) as cursor:
        for statement in statements:
            if statement:
                cursor.execute(statement)
    logger.info(f"Schema initialised on database {db_config.get('database')}")

# migrations/add_reset_and_cart_constraints.py
"""
Upgrade a database created by the old Express backend.

- users: role / profileurl / created_at columns, reset-token columns with a
  TIMESTAMP expiry (the old backend stored epoch milliseconds), and the
  "token and expiry set together" CHECK constraint
- cart: drop rows with a non-positive quantity, merge duplicate
  (user_id, product_title) rows, then add the UNIQUE
  constraint the atomic add-to-cart upsert relies on, plus quantity > 0
"""

import os
import logging
import psycopg2
import psycopg2.extras
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

USERS_SQL = """
ALTER TABLE users ADD COLUMN IF NOT EXISTS role VARCHAR DEFAULT 'user';
UPDATE users SET role = 'user' WHERE role IS NULL;
ALTER TABLE users ALTER COLUMN role SET NOT NULL;
ALTER TABLE users ADD COLUMN IF NOT EXISTS profileurl TEXT;
ALTER TABLE users ADD COLUMN IF NOT EXISTS created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP;
ALTER TABLE users ADD COLUMN IF NOT EXISTS reset_password_token VARCHAR;
ALTER TABLE users ADD COLUMN IF NOT EXISTS reset_password_expires TIMESTAMP;
CREATE INDEX IF NOT EXISTS ix_users_reset_password_token ON users(reset_password_token);
"""

RESET_PAIR_SQL = """
-- half-written reset state can never be redeemed; clear it
UPDATE users SET reset_password_token = NULL, reset_password_expires = NULL
WHERE (reset_password_token IS NULL) <> (reset_password_expires IS NULL);

ALTER TABLE users DROP CONSTRAINT IF EXISTS ck_users_reset_pair;
ALTER TABLE users ADD CONSTRAINT ck_users_reset_pair
CHECK ((reset_password_token IS NULL) = (reset_password_expires IS NULL));
"""

CART_CLEANUP_SQL = """
DELETE FROM cart WHERE quantity IS NULL OR quantity <= 0;
"""

CART_SQL = """
ALTER TABLE cart DROP CONSTRAINT IF EXISTS uq_cart_user_product;
ALTER TABLE cart ADD CONSTRAINT uq_cart_user_product UNIQUE (user_id, product_title);

ALTER TABLE cart DROP CONSTRAINT IF EXISTS ck_cart_quantity_positive;
ALTER TABLE cart ADD CONSTRAINT ck_cart_quantity_positive CHECK (quantity > 0);
"""


def convert_epoch_expiry(cur):
    """The old backend wrote Date.now() + 1h (milliseconds) into reset_password_expires"""
    cur.execute("""
        SELECT data_type FROM information_schema.columns
        WHERE table_name = 'users' AND column_name = 'reset_password_expires';
    """)
    row = cur.fetchone()
    if row and row["data_type"] in ("bigint", "numeric", "integer"):
        logger.info("🔄 Converting reset_password_expires from epoch milliseconds to TIMESTAMP...")
        cur.execute("""
            ALTER TABLE users ALTER COLUMN reset_password_expires TYPE TIMESTAMP
            USING (to_timestamp(reset_password_expires / 1000.0) AT TIME ZONE 'UTC');
        """)


def merge_duplicate_cart_rows(cur) -> int:
    """Fold duplicate rows into the oldest one, summing quantities"""
    cur.execute("""
        SELECT user_id, product_title, MIN(id) AS keep_id, SUM(quantity) AS total, COUNT(*) AS n
        FROM cart
        GROUP BY user_id, product_title
        HAVING COUNT(*) > 1;
    """)
    duplicates = cur.fetchall()
    for dup in duplicates:
        cur.execute(
            "UPDATE cart SET quantity = %s WHERE id = %s",
            (dup["total"], dup["keep_id"]),
        )
        cur.execute(
            "DELETE FROM cart WHERE user_id = %s AND product_title = %s AND id <> %s",
            (dup["user_id"], dup["product_title"], dup["keep_id"]),
        )
        logger.info(f"  ✅ user {dup['user_id']} / {dup['product_title']!r}: {dup['n']} rows → 1 (quantity {dup['total']})")
    return len(duplicates)


def run_migration() -> bool:
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        logger.error("❌ DATABASE_URL not found in .env file")
        return False

    logger.info("🚀 RESET TOKEN & CART CONSTRAINT MIGRATION")
    logger.info("=" * 60)

    conn = None
    try:
        conn = psycopg2.connect(database_url)
        cur = conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)

        logger.info("🔄 Updating users table...")
        cur.execute(USERS_SQL)
        convert_epoch_expiry(cur)
        cur.execute(RESET_PAIR_SQL)
        logger.info("✅ users table ready")

        # non-positive rows must go before quantities are summed
        cur.execute(CART_CLEANUP_SQL)
        logger.info(f"🧹 Removed {cur.rowcount} cart rows with non-positive quantity")

        logger.info("🔄 Merging duplicate cart rows...")
        merged = merge_duplicate_cart_rows(cur)
        logger.info(f"✅ Merged {merged} duplicate groups")

        cur.execute(CART_SQL)
        logger.info("✅ cart constraints added")

        conn.commit()
        logger.info("🎉 MIGRATION COMPLETED SUCCESSFULLY!")
        return True

    except psycopg2.Error as e:
        logger.error(f"❌ Database error: {e}")
        if conn:
            conn.rollback()
        return False
    finally:
        if conn:
            conn.close()


if __name__ == "__main__":
    raise SystemExit(0 if run_migration() else 1)

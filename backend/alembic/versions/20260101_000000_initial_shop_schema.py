"""initial shop schema

Revision ID: initial_shop_schema
Revises:
Create Date: 2026-01-01 00:00:00.000000

"""
from alembic import op

# revision identifiers, used by Alembic.
revision = 'initial_shop_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto";')

    # Prefixed text ids: U1, P1, O1 ...
    op.execute("""
        CREATE SEQUENCE IF NOT EXISTS users_id_seq;
        CREATE SEQUENCE IF NOT EXISTS products_id_seq;
        CREATE SEQUENCE IF NOT EXISTS orders_id_seq;
    """)

    op.execute("""
        CREATE OR REPLACE FUNCTION set_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS roles (
            id INT PRIMARY KEY,
            title TEXT NOT NULL UNIQUE
        );
        INSERT INTO roles (id, title) VALUES (1, 'customer'), (2, 'admin')
        ON CONFLICT (id) DO NOTHING;
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY DEFAULT ('U' || nextval('users_id_seq')::text),
            email TEXT NOT NULL,
            username TEXT NOT NULL,
            password TEXT NOT NULL,
            role_id INT NOT NULL REFERENCES roles(id),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT users_username_key UNIQUE (username),
            CONSTRAINT users_email_key UNIQUE (email)
        );
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS oauth (
            id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            access_token TEXT NOT NULL,
            refresh_token TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        CREATE INDEX IF NOT EXISTS idx_oauth_user_access ON oauth(user_id, access_token);
        CREATE INDEX IF NOT EXISTS idx_oauth_refresh ON oauth(refresh_token);
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS categories (
            id SERIAL PRIMARY KEY,
            title TEXT NOT NULL UNIQUE
        );
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS products (
            id TEXT PRIMARY KEY DEFAULT ('P' || nextval('products_id_seq')::text),
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            price NUMERIC(12,2) NOT NULL CHECK (price >= 0),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );

        CREATE TABLE IF NOT EXISTS products_categories (
            id SERIAL PRIMARY KEY,
            product_id TEXT NOT NULL UNIQUE REFERENCES products(id) ON DELETE CASCADE,
            category_id INT NOT NULL REFERENCES categories(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS images (
            id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
            filename TEXT NOT NULL,
            url TEXT NOT NULL,
            product_id TEXT NOT NULL REFERENCES products(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        CREATE INDEX IF NOT EXISTS idx_images_product_id ON images(product_id);
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS orders (
            id TEXT PRIMARY KEY DEFAULT ('O' || nextval('orders_id_seq')::text),
            user_id TEXT NOT NULL REFERENCES users(id),
            contact TEXT NOT NULL DEFAULT '',
            address TEXT NOT NULL DEFAULT '',
            transfer_slip JSONB,
            status TEXT NOT NULL DEFAULT 'waiting'
                CHECK (status IN ('waiting', 'shipping', 'completed', 'canceled')),
            total_paid NUMERIC(14,2) NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        CREATE INDEX IF NOT EXISTS idx_orders_user_id ON orders(user_id);
        CREATE INDEX IF NOT EXISTS idx_orders_status ON orders(status);

        CREATE TABLE IF NOT EXISTS products_orders (
            id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
            order_id TEXT NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
            qty INT NOT NULL CHECK (qty > 0),
            product JSONB NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_products_orders_order_id ON products_orders(order_id);
    """)

    for table in ("users", "oauth", "products", "orders"):
        op.execute(f"""
            DROP TRIGGER IF EXISTS trg_{table}_updated_at ON {table};
            CREATE TRIGGER trg_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW EXECUTE FUNCTION set_updated_at();
        """)


def downgrade():
    op.execute("""
        DROP TABLE IF EXISTS products_orders;
        DROP TABLE IF EXISTS orders;
        DROP TABLE IF EXISTS images;
        DROP TABLE IF EXISTS products_categories;
        DROP TABLE IF EXISTS products;
        DROP TABLE IF EXISTS categories;
        DROP TABLE IF EXISTS oauth;
        DROP TABLE IF EXISTS users;
        DROP TABLE IF EXISTS roles;
        DROP FUNCTION IF EXISTS set_updated_at();
        DROP SEQUENCE IF EXISTS orders_id_seq;
        DROP SEQUENCE IF EXISTS products_id_seq;
        DROP SEQUENCE IF EXISTS users_id_seq;
    """)

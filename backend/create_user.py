import getpass

import psycopg2
from passlib.hash import bcrypt
from dotenv import load_dotenv

load_dotenv()

from backend.app.config import load_database_config
from backend.app.request_context import ADMIN_ROLE, USER_ROLE


def main():
    username = input("New username: ").strip()
    email = input("Email: ").strip().lower() or None
    password = getpass.getpass("New password: ")
    make_admin = input("Admin? [y/N]: ").strip().lower() in {"y", "yes"}
    pw_hash = bcrypt.hash(password)

    db = load_database_config()
    with psycopg2.connect(**db.as_connect_kwargs()) as conn, conn.cursor() as cur:
        cur.execute(
            "INSERT INTO users (username, email, password_hash, role) VALUES (%s, %s, %s, %s) "
            "ON CONFLICT (username) DO NOTHING",
            (username, email, pw_hash, ADMIN_ROLE if make_admin else USER_ROLE),
        )
        conn.commit()
    print("Done. (If username existed already, it was unchanged.)")

if __name__ == "__main__":
    main()

import os, random, uuid, argparse, logging, sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from faker import Faker
from dotenv import load_dotenv
import psycopg
from psycopg.types.json import Json

from services.fintech_api.app.core.generators import (
    generate_account_number, generate_card_number, generate_cvv, generate_reference, quantize,
)
from services.fintech_api.app.core.ledger import fee_for
from services.fintech_api.app.core.models import TransactionType

load_dotenv('.env')

OLTP_HOST = os.getenv('OLTP_HOST', 'localhost')
OLTP_DB = os.getenv('OLTP_DB', 'fintech_oltp')
OLTP_USER = os.getenv('OLTP_USER', 'app')
OLTP_PASSWORD = os.getenv('OLTP_PASSWORD', 'app_password')
OLTP_PORT = int(os.getenv('OLTP_PORT', '5432'))

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
log = logging.getLogger("fintech-seed")

# child tables first
TABLES = [
    "notifications", "support_tickets", "investments", "transactions",
    "beneficiaries", "cards", "accounts", "users", "market_data",
]

MARKET_DATA = [
    ("BTC", "Bitcoin", "CRYPTO", "42000.5", "2.5", "30000000000"),
    ("ETH", "Ethereum", "CRYPTO", "2250.75", "-1.2", "15000000000"),
    ("AAPL", "Apple Inc.", "STOCK", "185.92", "0.8", "50000000"),
    ("TSLA", "Tesla Inc.", "STOCK", "215.45", "-3.4", "80000000"),
    ("EURUSD", "Euro / US Dollar", "FOREX", "1.09", "0.1", "100000000"),
]


def conn():
    return psycopg.connect(
        host=OLTP_HOST, port=OLTP_PORT, dbname=OLTP_DB,
        user=OLTP_USER, password=OLTP_PASSWORD
    )

def money(lo, hi, currency="USD"):
    return quantize(Decimal(str(round(random.uniform(lo, hi), 2))), currency)

def now():
    return datetime.now(timezone.utc)

def gen_email(fake):
    # realistic unique email domain mix
    base = fake.user_name()
    domain = random.choice(["gmail.com","yahoo.com","outlook.com","example.com"])
    return f"{base}{random.randint(1,99999)}@{domain}"


def seed_market_data(cur):
    for symbol, name, kind, price, change, volume in MARKET_DATA:
        cur.execute(
            """
            INSERT INTO market_data (id, symbol, name, type, current_price, change_24h, volume_24h, updated_at)
            VALUES (%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (uuid.uuid4(), symbol, name, kind, Decimal(price), Decimal(change), Decimal(volume), now())
        )

def seed_users(cur, fake, n_users):
    users = []
    for i in range(1, n_users + 1):
        uid = uuid.uuid4()
        role = "ADMIN" if i == 1 else ("MERCHANT" if i % 10 == 0 else "CUSTOMER")
        status = "SUSPENDED" if i % 5 == 0 else "ACTIVE"
        cur.execute(
            """
            INSERT INTO users (id, email, first_name, last_name, phone_number, role, status,
                               email_verified, kyc_verified, created_at)
            VALUES (%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (uid, gen_email(fake), fake.first_name(), fake.last_name(), fake.numerify("+1##########"),
             role, status, i % 3 == 0, i % 4 == 0, now())
        )
        users.append((uid, role))
    return users

def seed_accounts(cur, users):
    """Checking (default) + savings per user; available sits at or below balance."""
    accounts = []
    for uid, role in users:
        currency = "EUR" if role == "MERCHANT" else "USD"
        balance = money(5000, 50000) if role == "MERCHANT" else money(1000, 10000)
        for kind, bal, avail, is_default in (
            ("CHECKING", balance, (balance * Decimal("0.9")).quantize(Decimal("0.01")), True),
            ("SAVINGS", balance * 2, balance * 2, False),
        ):
            aid = uuid.uuid4()
            cur.execute(
                """
                INSERT INTO accounts (id, user_id, account_number, account_type, currency, balance,
                                      available_balance, is_default, status, created_at, updated_at)
                VALUES (%s,%s,%s,%s,%s,%s,%s,%s,'ACTIVE',%s,%s)
                """,
                (aid, uid, generate_account_number(), kind, currency, bal, avail, is_default, now(), now())
            )
            accounts.append((aid, uid, currency))
    return accounts

def seed_cards(cur, fake, users):
    for uid, _ in users:
        kind = random.choice(["DEBIT", "CREDIT", "VIRTUAL", "PREPAID"])
        limit = money(1000, 20000) if kind == "CREDIT" else None
        cur.execute(
            """
            INSERT INTO cards (id, user_id, card_number, card_holder_name, card_type, status, expiry_month,
                               expiry_year, cvv, is_virtual, credit_limit, available_credit, created_at)
            VALUES (%s,%s,%s,%s,%s,'ACTIVE',%s,%s,%s,%s,%s,%s,%s)
            """,
            (uuid.uuid4(), uid, generate_card_number(), fake.name().upper(), kind, random.randint(1, 12),
             now().year + random.randint(1, 5), generate_cvv(), kind == "VIRTUAL", limit, limit, now())
        )

def seed_beneficiaries(cur, fake, users, accounts):
    for uid, _ in random.sample(users, k=min(len(users), max(1, len(users) // 2))):
        target = random.choice(accounts)
        cur.execute(
            """
            INSERT INTO beneficiaries (id, user_id, name, account_number, bank_name, bank_code, email,
                                       phone_number, is_verified, created_at)
            SELECT %s, %s, %s, account_number, 'FinTech Bank', 'FTB001', %s, %s, %s, %s
            FROM accounts WHERE id = %s
            """,
            (uuid.uuid4(), uid, fake.name(), fake.email(), fake.numerify("+1##########"),
             random.random() < 0.7, now(), target[0])
        )

def seed_transactions(cur, fake, accounts, n_transactions):
    """Historical rows only: balances above already reflect them."""
    for _ in range(n_transactions):
        src = random.choice(accounts)
        dst = random.choice([a for a in accounts if a[2] == src[2] and a[0] != src[0]] or [None])
        status = random.choice(["COMPLETED", "PENDING", "FAILED"])
        created = now() - timedelta(days=random.randint(0, 90), minutes=random.randint(0, 1440))
        cur.execute(
            """
            INSERT INTO transactions (id, user_id, from_account_id, to_account_id, type, status, amount,
                                      currency, fee, description, reference, metadata, created_at, processed_at)
            VALUES (%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (uuid.uuid4(), src[1], src[0], dst[0] if dst else None,
             "TRANSFER" if dst else "WITHDRAWAL", status, money(10, 1000, src[2]), src[2],
             fee_for(TransactionType.TRANSFER if dst else TransactionType.WITHDRAWAL, src[2]),
             fake.sentence(), generate_reference(), Json({"seeded": True}), created,
             created if status == "COMPLETED" else None)
        )

def seed_investments(cur, accounts, n_investments):
    symbols = {"BTC": "Bitcoin", "ETH": "Ethereum", "AAPL": "Apple Inc.", "TSLA": "Tesla Inc."}
    for _ in range(n_investments):
        acc = random.choice(accounts)
        symbol = random.choice(list(symbols))
        quantity = Decimal(str(round(random.uniform(0.1, 10), 8)))
        avg = money(100, 40000)
        current = (avg * Decimal(str(1 + (random.random() - 0.5) * 0.1))).quantize(Decimal("0.01"))
        cur.execute(
            """
            INSERT INTO investments (id, account_id, symbol, asset_name, quantity, average_price, current_price,
                                     total_value, pl_percentage, created_at)
            VALUES (%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (uuid.uuid4(), acc[0], symbol, symbols[symbol], quantity, avg, current,
             (quantity * current).quantize(Decimal("0.00000001")),
             ((current - avg) / avg * 100).quantize(Decimal("0.0001")), now())
        )

def seed_tickets(cur, fake, users, n_tickets):
    for i in range(n_tickets):
        uid, _ = random.choice(users)
        cur.execute(
            """
            INSERT INTO support_tickets (id, user_id, subject, description, status, priority, created_at, updated_at)
            VALUES (%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (uuid.uuid4(), uid, fake.sentence(nb_words=5), fake.paragraph(),
             "RESOLVED" if i % 3 == 0 else "OPEN", random.choice(["LOW", "MEDIUM", "HIGH", "URGENT"]), now(), now())
        )

def seed_notifications(cur, fake, users, n_notifications):
    for i in range(n_notifications):
        uid, _ = random.choice(users)
        cur.execute(
            """
            INSERT INTO notifications (id, user_id, type, title, message, status, created_at)
            VALUES (%s,%s,%s,%s,%s,%s,%s)
            """,
            (uuid.uuid4(), uid, random.choice(["TRANSACTION", "SECURITY", "ACCOUNT", "PROMOTIONAL"]),
             fake.sentence(nb_words=3), fake.sentence(), "READ" if i % 2 == 0 else "UNREAD", now())
        )


def main(n_users=100, n_transactions=500, reset=False):
    fake = Faker()
    Faker.seed(42); random.seed(42)

    with conn() as c, c.cursor() as cur:
        if reset:
            log.info("Cleaning database...")
            for table in TABLES:
                cur.execute(f"DELETE FROM {table}")

        log.info("Seeding market data...")
        seed_market_data(cur)
        log.info(f"Seeding {n_users} users...")
        users = seed_users(cur, fake, n_users)
        log.info("Seeding accounts...")
        accounts = seed_accounts(cur, users)
        log.info("Seeding cards and beneficiaries...")
        seed_cards(cur, fake, users)
        seed_beneficiaries(cur, fake, users, accounts)
        log.info(f"Seeding {n_transactions} transactions...")
        seed_transactions(cur, fake, accounts, n_transactions)
        log.info("Seeding investments, tickets, notifications...")
        seed_investments(cur, accounts, n_users)
        seed_tickets(cur, fake, users, max(1, n_users // 2))
        seed_notifications(cur, fake, users, n_users * 3)

        c.commit()
        log.info("Done.")

if __name__ == "__main__":
    ap = argparse.ArgumentParser()
    ap.add_argument("--users", type=int, default=100)
    ap.add_argument("--transactions", type=int, default=500)
    ap.add_argument("--reset", action="store_true", help="delete existing rows first")
    args = ap.parse_args()
    main(args.users, args.transactions, args.reset)

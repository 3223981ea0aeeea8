from sqlalchemy import JSON, Column, Date, DateTime, Integer, MetaData, Numeric, String, Table, Text

metadata = MetaData()

bookings = Table(
    "bookings",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("guest_name", String(255)),
    Column("guest_email", String(255)),
    Column("guest_phone", String(50)),
    Column("room_type", String(255)),
    Column("check_in", Date),
    Column("check_out", Date),
    Column("guests_count", Integer, nullable=False, default=1),
    Column("price_per_night", Numeric(12, 2)),
    Column("total_price", Numeric(12, 2)),
    Column("currency", String(3), nullable=False),
    Column("payment_status", String(32), nullable=False),
    Column("booking_status", String(32), nullable=False, index=True),
    Column("etg_book_hash", String(255)),
    Column("etg_prebook", JSON),
    Column("payment_intent_id", String(255)),
    Column("etg_process_id", String(255)),
    Column("etg_order_id", String(255), index=True),
    Column("booking_error", Text),
    Column("lock_version", Integer, nullable=False, default=0),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("confirmed_at", DateTime(timezone=True)),
)

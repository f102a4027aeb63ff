import pytest
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from sqlalchemy import create_engine, Column, Integer
from sqlalchemy.orm import sessionmaker, declarative_base
from parkwell.shared.custom_types import Money, UTCDateTime, to_money
from unittest.mock import MagicMock

Base = declarative_base()


class SampleRow(Base):
    __tablename__ = "sample_rows"
    id = Column(Integer, primary_key=True)
    utc_datetime_col = Column(UTCDateTime)
    amount = Column(Money)


@pytest.fixture(scope="function")
def db_session_custom_types():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


def test_utc_datetime_aware_to_db_and_back(db_session_custom_types):
    session = db_session_custom_types
    now_aware = datetime.now(timezone.utc).replace(microsecond=0)

    session.add(SampleRow(utc_datetime_col=now_aware))
    session.commit()

    retrieved = session.query(SampleRow).first()
    assert retrieved.utc_datetime_col == now_aware
    assert retrieved.utc_datetime_col.tzinfo == timezone.utc


def test_utc_datetime_other_timezone_is_converted(db_session_custom_types):
    session = db_session_custom_types
    est = timezone(timedelta(hours=-5))
    now_est = datetime.now(est).replace(microsecond=0)

    session.add(SampleRow(utc_datetime_col=now_est))
    session.commit()

    retrieved = session.query(SampleRow).first()
    assert retrieved.utc_datetime_col == now_est.astimezone(timezone.utc)
    assert retrieved.utc_datetime_col.tzinfo == timezone.utc


def test_utc_datetime_none_value(db_session_custom_types):
    session = db_session_custom_types
    session.add(SampleRow(utc_datetime_col=None, amount=None))
    session.commit()

    retrieved = session.query(SampleRow).first()
    assert retrieved.utc_datetime_col is None
    assert retrieved.amount is None


def test_utc_datetime_load_dialect_impl_non_sqlite():
    utc_type = UTCDateTime()
    mock_dialect = MagicMock()
    mock_dialect.name = 'postgresql'
    mock_dialect.type_descriptor.return_value = "mock_type_descriptor"

    result = utc_type.load_dialect_impl(mock_dialect)
    assert result == "mock_type_descriptor"
    args, kwargs = mock_dialect.type_descriptor.call_args
    assert isinstance(args[0], UTCDateTime.impl)
    assert args[0].timezone is True


@pytest.mark.parametrize("value, expected", [
    (None, Decimal("0.00")),
    (5, Decimal("5.00")),
    ("2.5", Decimal("2.50")),
    (0.1 + 0.2, Decimal("0.30")),
    (Decimal("1.005"), Decimal("1.01")),
])
def test_to_money(value, expected):
    assert to_money(value) == expected


def test_money_is_stored_as_cents(db_session_custom_types):
    session = db_session_custom_types
    session.add(SampleRow(amount=Decimal("12.34")))
    session.commit()

    raw = session.connection().exec_driver_sql("SELECT amount FROM sample_rows").scalar()
    assert raw == 1234

    retrieved = session.query(SampleRow).first()
    assert retrieved.amount == Decimal("12.34")
    assert isinstance(retrieved.amount, Decimal)


def test_money_bind_param_rounds_half_up():
    money = Money()
    assert money.process_bind_param(Decimal("0.125"), None) == 13
    assert money.process_bind_param("3", None) == 300
    assert money.process_result_value(1999, None) == Decimal("19.99")

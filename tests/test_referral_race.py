# tests/test_referral_race.py

import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from wishbucket.core.exceptions import AlreadyRedeemed
from wishbucket.db.session import Base
from wishbucket.models.notification import Notification
from wishbucket.models.referral import Referral
from wishbucket.models.user import User
from wishbucket.services import referral as referral_service


@pytest.fixture
def file_sessionmaker(tmp_path):
    """
    Отдельная база в файле: у каждого потока свое соединение,
    как у двух воркеров приложения.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'referrals.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with SessionLocal() as db:
        db.add_all([
            User(id=1001, referral_code="ABC12345", first_name="Alice"),
            User(id=2002, referral_code="ZZZ99999", first_name="Bob"),
        ])
        db.commit()

    yield SessionLocal
    engine.dispose()


def test_parallel_redemptions_in_separate_sessions(file_sessionmaker):
    """Оба запроса прошли проверку, но записать применение удается только одному."""
    barrier = threading.Barrier(2, timeout=10)
    outcomes = []
    lock = threading.Lock()

    def redeem():
        db = file_sessionmaker()
        try:
            issuer = referral_service.check_redemption(db, redeemer_id=2002, code="ABC12345")
            redeemer = db.get(User, 2002)
            # Ждем, пока второй поток тоже пройдет проверку
            barrier.wait()
            try:
                referral_service.credit_redemption(db, issuer=issuer, redeemer=redeemer)
                outcome = "credited"
            except AlreadyRedeemed:
                outcome = "rejected"
        except Exception as e:
            outcome = repr(e)
        finally:
            db.close()
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=redeem) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(outcomes) == ["credited", "rejected"]

    with file_sessionmaker() as db:
        assert db.query(Referral).filter(Referral.referred_id == 2002).count() == 1
        assert db.query(Notification).count() == 1
        issuer, redeemer = db.get(User, 1001), db.get(User, 2002)
        assert (issuer.bonus_points, issuer.referrals) == (100, 1)
        assert (redeemer.bonus_points, redeemer.referrals) == (50, 0)

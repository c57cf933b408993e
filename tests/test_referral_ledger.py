# tests/test_referral_ledger.py

import pytest

from wishbucket.core.exceptions import (
    AlreadyRedeemed,
    InvalidCode,
    PersistenceFailure,
    SelfReferralNotAllowed,
)
from wishbucket.crud import referral as crud_referral
from wishbucket.models.notification import DELIVERY_PENDING, Notification
from wishbucket.models.referral import Referral
from wishbucket.services import referral as referral_service


@pytest.fixture
def issuer(make_user):
    return make_user(1001, referral_code="ABC12345", first_name="Alice")


@pytest.fixture
def redeemer(make_user):
    return make_user(2002, referral_code="ZZZ99999", first_name="Bob")


def _balances(db_session, *users):
    for u in users:
        db_session.refresh(u)
    return [(u.bonus_points, u.referrals) for u in users]


def test_apply_code_credits_both_sides(db_session, issuer, redeemer):
    """Пользователь 2002 применяет код ABC12345 пользователя 1001."""
    result, notification_id = referral_service.apply_referral(db_session, redeemer=redeemer, code="ABC12345")

    assert result.success is True
    assert result.bonus_credited == 50

    db_session.refresh(issuer)
    db_session.refresh(redeemer)
    assert issuer.bonus_points == 100
    assert issuer.referrals == 1
    assert redeemer.bonus_points == 50
    assert redeemer.referrals == 0

    redemption = crud_referral.get_referral_by_referred_id(db_session, referred_id=2002)
    assert redemption.referrer_id == 1001
    assert redemption.bonus_earned == 100

    notification = db_session.get(Notification, notification_id)
    assert notification.user_id == 1001
    assert notification.type == "referral_signup"
    assert notification.delivery_status == DELIVERY_PENDING
    assert notification.data["referred_user_id"] == 2002


def test_code_lookup_is_case_insensitive_and_trimmed(db_session, issuer, redeemer):
    result, _ = referral_service.apply_referral(db_session, redeemer=redeemer, code="  abc12345 ")
    assert result.success is True


def test_second_redemption_is_rejected(db_session, issuer, redeemer, make_user):
    make_user(3003, referral_code="QQQ11111")
    referral_service.apply_referral(db_session, redeemer=redeemer, code="ABC12345")

    with pytest.raises(AlreadyRedeemed):
        referral_service.apply_referral(db_session, redeemer=redeemer, code="QQQ11111")

    assert db_session.query(Referral).filter(Referral.referred_id == 2002).count() == 1
    assert _balances(db_session, issuer, redeemer) == [(100, 1), (50, 0)]


def test_self_referral_is_rejected_without_writes(db_session, issuer):
    with pytest.raises(SelfReferralNotAllowed):
        referral_service.apply_referral(db_session, redeemer=issuer, code="ABC12345")

    assert db_session.query(Referral).count() == 0
    assert db_session.query(Notification).count() == 0
    assert _balances(db_session, issuer) == [(0, 0)]


@pytest.mark.parametrize("code", ["NOPE0000", "", "   "])
def test_invalid_code_is_rejected_without_writes(db_session, issuer, redeemer, code):
    with pytest.raises(InvalidCode):
        referral_service.apply_referral(db_session, redeemer=redeemer, code=code)

    assert db_session.query(Referral).count() == 0
    assert db_session.query(Notification).count() == 0
    assert _balances(db_session, issuer, redeemer) == [(0, 0), (0, 0)]


def test_guard_checks_run_in_order(db_session, issuer, redeemer):
    """Уже применивший код все равно получает InvalidCode на несуществующий код."""
    referral_service.apply_referral(db_session, redeemer=redeemer, code="ABC12345")

    with pytest.raises(InvalidCode):
        referral_service.apply_referral(db_session, redeemer=redeemer, code="NOPE0000")
    with pytest.raises(SelfReferralNotAllowed):
        referral_service.apply_referral(db_session, redeemer=redeemer, code="ZZZ99999")


def test_concurrent_redemption_credits_once(db_session, issuer, redeemer):
    """
    Две параллельные попытки прошли проверку одновременно.
    Запись выигрывает одна, вторую отсекает уникальный индекс.
    """
    referral_service.check_redemption(db_session, redeemer_id=2002, code="ABC12345")
    referral_service.check_redemption(db_session, redeemer_id=2002, code="ABC12345")

    referral_service.credit_redemption(db_session, issuer=issuer, redeemer=redeemer)
    with pytest.raises(AlreadyRedeemed):
        referral_service.credit_redemption(db_session, issuer=issuer, redeemer=redeemer)

    assert db_session.query(Referral).count() == 1
    assert db_session.query(Notification).count() == 1
    assert _balances(db_session, issuer, redeemer) == [(100, 1), (50, 0)]


def test_database_failure_rolls_back_everything(db_session, issuer, redeemer, mocker):
    from sqlalchemy.exc import OperationalError

    mocker.patch(
        "wishbucket.crud.notification.build_notification",
        side_effect=OperationalError("INSERT", {}, Exception("connection lost")),
    )

    with pytest.raises(PersistenceFailure):
        referral_service.credit_redemption(db_session, issuer=issuer, redeemer=redeemer)

    assert db_session.query(Referral).count() == 0
    assert _balances(db_session, issuer, redeemer) == [(0, 0), (0, 0)]


def test_generated_codes_are_uppercase_alphanumeric():
    codes = {referral_service.generate_code() for _ in range(50)}
    for code in codes:
        assert len(code) == 8
        assert code.isalnum() and code == code.upper()
    assert len(codes) > 1


def test_referral_stats_and_list(db_session, issuer, redeemer):
    referral_service.apply_referral(db_session, redeemer=redeemer, code="ABC12345")
    db_session.refresh(issuer)

    stats = referral_service.get_referral_stats(db_session, issuer)
    assert stats.referral_code == "ABC12345"
    assert stats.total_referrals == 1
    assert stats.active_referrals == 1
    assert stats.total_bonus_earned == 100
    assert stats.referral_link == "https://t.me/WishBucketBot/app?startapp=ref_ABC12345"

    entries = referral_service.get_referrals(db_session, issuer)
    assert len(entries) == 1
    assert entries[0].referred_user_id == 2002
    assert entries[0].referred_user.first_name == "Bob"

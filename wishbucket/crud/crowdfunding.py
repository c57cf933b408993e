# wishbucket/crud/crowdfunding.py
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload
from wishbucket.models.crowdfunding import Crowdfunding, CrowdfundingContributor


def get_by_item_id(db: Session, item_id: int) -> Crowdfunding | None:
    return db.query(Crowdfunding).options(selectinload(Crowdfunding.contributors)).filter(
        Crowdfunding.item_id == item_id
    ).first()

def get_by_item_id_for_update(db: Session, item_id: int) -> Crowdfunding | None:
    """Блокирует строку сбора, чтобы параллельные взносы закрывали его ровно один раз."""
    return db.query(Crowdfunding).filter(Crowdfunding.item_id == item_id).with_for_update().first()

def build_crowdfunding(db: Session, item_id: int, target_amount: Decimal) -> Crowdfunding:
    """Требует внешнего вызова db.commit()."""
    db_crowdfunding = Crowdfunding(item_id=item_id, target_amount=target_amount, current_amount=Decimal("0"))
    db.add(db_crowdfunding)
    return db_crowdfunding

def build_contribution(db: Session, crowdfunding_id: int, user_id: int, amount: Decimal) -> CrowdfundingContributor:
    """Требует внешнего вызова db.commit()."""
    db_contribution = CrowdfundingContributor(crowdfunding_id=crowdfunding_id, user_id=user_id, amount=amount)
    db.add(db_contribution)
    return db_contribution

def increment_amount(db: Session, crowdfunding_id: int, amount: Decimal):
    """Атомарно увеличивает собранную сумму. Требует внешнего вызова db.commit()."""
    db.execute(
        update(Crowdfunding)
        .where(Crowdfunding.id == crowdfunding_id)
        .values(current_amount=Crowdfunding.current_amount + amount)
    )

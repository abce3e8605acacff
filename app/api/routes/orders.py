from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.models.user import User
from app.core.auth_dependency import get_db, get_current_user_obj
from app.schemas.order import OrderResponse
from app.services.order_ledger import list_orders_for_user

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.get("/me", response_model=List[OrderResponse])
def my_orders(
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    """Payment history for the current account, newest first."""
    return list_orders_for_user(db, user.id)

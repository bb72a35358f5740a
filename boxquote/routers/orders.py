from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from .. import models, schemas
from ..database import get_db
from ..reconciliation import confirm_quantities
from ..state_machines import OrderStateMachine

router = APIRouter(prefix="/orders", tags=["orders"])


def _get_order(order_id: int, db: Session) -> models.Order:
    order = db.query(models.Order).filter(models.Order.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.get("/", response_model=List[schemas.Order])
def list_orders(status: Optional[models.OrderStatus] = None, client_id: Optional[int] = None,
                skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    query = db.query(models.Order)
    if status is not None:
        query = query.filter(models.Order.status == status)
    if client_id is not None:
        query = query.filter(models.Order.client_id == client_id)
    return query.order_by(models.Order.created_at.desc(), models.Order.id.desc()).offset(skip).limit(limit).all()


@router.get("/{order_id}", response_model=schemas.Order)
def get_order(order_id: int, db: Session = Depends(get_db)):
    return _get_order(order_id, db)


@router.patch("/{order_id}/status", response_model=schemas.Order)
def update_order_status(order_id: int, update: schemas.OrderStatusUpdate, db: Session = Depends(get_db)):
    """
    Move an order on the board. A rejected move answers 400 with the
    order's current status so the caller can revert its optimistic view.
    """
    order = _get_order(order_id, db)
    OrderStateMachine().apply_transition(order, update.status, reason=update.notes)
    db.commit()
    db.refresh(order)
    return order


@router.patch("/{order_id}/payment", response_model=schemas.Order)
def register_payment(order_id: int, payment: schemas.PaymentRequest, db: Session = Depends(get_db)):
    order = _get_order(order_id, db)
    OrderStateMachine().register_payment(order, payment.payment_type, payment.method)
    db.commit()
    db.refresh(order)
    return order


@router.post("/{order_id}/confirm-quantities")
def confirm_order_quantities(order_id: int, request: schemas.ConfirmQuantitiesRequest,
                             db: Session = Depends(get_db)):
    order = _get_order(order_id, db)
    delivered = {}
    for item in request.items:
        delivered[item.id] = item.quantity_delivered
    result = confirm_quantities(db, order, delivered)
    db.commit()
    db.refresh(order)
    response = result.to_dict()
    response["order"] = schemas.Order.model_validate(order).model_dump(mode="json")
    return response

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from .. import models, schemas
from ..database import get_db
from ..validation import normalize_digits, normalize_email

router = APIRouter(prefix="/clients", tags=["clients"])


def _normalize(values: dict) -> dict:
    # Identity fields are stored the way conversion matches them
    if "cuit" in values:
        values["cuit"] = normalize_digits(values["cuit"])
    if "email" in values:
        values["email"] = normalize_email(values["email"])
    if "phone" in values:
        values["phone"] = normalize_digits(values["phone"])
    return values


@router.post("/", response_model=schemas.Client)
def create_client(client: schemas.ClientCreate, db: Session = Depends(get_db)):
    db_client = models.Client(**_normalize(client.model_dump()))
    db.add(db_client)
    db.commit()
    db.refresh(db_client)
    return db_client

@router.get("/", response_model=List[schemas.Client])
def list_clients(search: Optional[str] = None, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    query = db.query(models.Client)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            models.Client.name.ilike(pattern)
            | models.Client.company.ilike(pattern)
            | models.Client.email.ilike(pattern)
        )
    return query.order_by(models.Client.name).offset(skip).limit(limit).all()

@router.get("/{client_id}", response_model=schemas.Client)
def get_client(client_id: int, db: Session = Depends(get_db)):
    client = db.query(models.Client).filter(models.Client.id == client_id).first()
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client

@router.patch("/{client_id}", response_model=schemas.Client)
def update_client(client_id: int, update: schemas.ClientUpdate, db: Session = Depends(get_db)):
    client = db.query(models.Client).filter(models.Client.id == client_id).first()
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    for field, value in _normalize(update.model_dump(exclude_unset=True)).items():
        setattr(client, field, value)
    db.commit()
    db.refresh(client)
    return client

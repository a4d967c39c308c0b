"""Cart pricing endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.base import get_db
from storefront.schemas.cart import CartQuote, CartQuoteRequest
from storefront.services import cart as cart_service

router = APIRouter(prefix="/cart", tags=["cart"])


@router.post("/quote", response_model=CartQuote)
async def quote_cart(body: CartQuoteRequest, db: AsyncSession = Depends(get_db)):
    """Re-price the client's cart from current catalog data."""
    return await cart_service.quote_cart(db, body.items)

"""Product catalogue queries."""

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.product import Product


async def list_products(db: AsyncSession, skip: int = 0, limit: int = 50) -> list[Product]:
    stmt = select(Product).order_by(Product.id).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_product(product_id: int, db: AsyncSession) -> Product:
    product = await db.get(Product, product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


async def get_products_by_ids(ids: list[int], db: AsyncSession) -> dict[int, Product]:
    if not ids:
        return {}
    result = await db.execute(select(Product).where(Product.id.in_(ids)))
    return {p.id: p for p in result.scalars().all()}

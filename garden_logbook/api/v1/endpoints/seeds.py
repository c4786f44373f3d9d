from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.core.deps import CurrentUser, get_db
from garden_logbook.models.plant import Seed
from garden_logbook.schemas.plant import SeedCreate, SeedRead, SeedUpdate

router = APIRouter(prefix="/seeds", tags=["seeds"])


@router.get("", response_model=list[SeedRead])
async def list_seeds(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Seed).where(Seed.user_id == current_user.id).order_by(Seed.variety))
    return result.scalars().all()


@router.post("", response_model=SeedRead, status_code=status.HTTP_201_CREATED)
async def create_seed(data: SeedCreate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    seed = Seed(**data.model_dump(), user_id=current_user.id)
    db.add(seed)
    await db.commit()
    await db.refresh(seed)
    return seed


@router.get("/{seed_id}", response_model=SeedRead)
async def get_seed(seed_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return await _get_own_seed(db, seed_id, current_user.id)


@router.patch("/{seed_id}", response_model=SeedRead)
async def update_seed(seed_id: int, data: SeedUpdate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    seed = await _get_own_seed(db, seed_id, current_user.id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(seed, field, value)
    await db.commit()
    await db.refresh(seed)
    return seed


@router.delete("/{seed_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_seed(seed_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    seed = await _get_own_seed(db, seed_id, current_user.id)
    await db.delete(seed)
    await db.commit()


async def _get_own_seed(db: AsyncSession, seed_id: int, user_id: int) -> Seed:
    seed = await db.get(Seed, seed_id)
    if seed is None or seed.user_id != user_id:
        raise HTTPException(status_code=404, detail="Seed not found")
    return seed

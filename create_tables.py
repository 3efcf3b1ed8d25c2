import asyncio
from app.db.session import engine, init_models


async def create_all():
    await init_models(engine)
    print("Toutes les tables ont été créées")


if __name__ == "__main__":
    asyncio.run(create_all())

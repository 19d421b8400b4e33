from app.schemas.init import init_beanie_odm
from app.shared.storage.mongo import get_mongo_client

ELEARN_MONGO_LABEL = "elearn_primary"


async def init_schema():
    mongo_client = get_mongo_client(ELEARN_MONGO_LABEL)
    db = mongo_client.get_default_database("elearn")
    await init_beanie_odm(db)


if __name__ == "__main__":
    import asyncio

    asyncio.run(init_schema())

from contextlib import asynccontextmanager

from fastapi import FastAPI

from chatservice.core.config import get_settings
from chatservice.core.logging import configure_logging
from chatservice.database.connection import close_mongo_connection, connect_to_mongo, get_database
from chatservice.repositories.message_repository import MessageRepository
from chatservice.repositories.user_conversation_repository import UserConversationRepository
from chatservice.routers.conversations import router as conversations_router
from chatservice.routers.errors import register_exception_handlers
from chatservice.routers.profiles import router as profiles_router


@asynccontextmanager
async def lifespan(app: FastAPI):

    await connect_to_mongo()
    db = get_database()
    await MessageRepository(db).ensure_indexes()
    await UserConversationRepository(db).ensure_indexes()
    try:
        yield
    finally:
        await close_mongo_connection()


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.APP.LOG_LEVEL, settings.APP.JSON_LOGS)

    app = FastAPI(title="Chat Service", lifespan=lifespan)
    register_exception_handlers(app)
    app.include_router(profiles_router)
    app.include_router(conversations_router)

    @app.get("/")
    async def root():
        return {"message": "Chat service is running"}

    return app


app = create_app()

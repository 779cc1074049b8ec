import logging
from contextlib import asynccontextmanager

import boto3
import firebase_admin
import uvicorn
from botocore.config import Config
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from firebase_admin import credentials, firestore as fs
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from config import (
    AWS_ACCESS_KEY_ID,
    AWS_REGION,
    AWS_SECRET_ACCESS_KEY,
    CORS_ORIGINS,
    FIREBASE_CREDENTIALS,
    FIRESTORE_DATABASE,
    HOST,
    LOG_LEVEL,
    PORT,
    S3_BUCKET_NAME,
)
from errors import CommunityError
from routes.posts import router as posts_router
from routes.uploads import router as uploads_router
from services.firestore import FirestoreDB
from services.posts import PostService
from services.s3 import S3Service

logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize Firebase Admin SDK once per process
    cred = credentials.Certificate(FIREBASE_CREDENTIALS)
    firebase_app = firebase_admin.initialize_app(cred)

    # Initialize dependencies
    firestore = FirestoreDB(fs.client(firebase_app, database_id=FIRESTORE_DATABASE))
    s3_client = boto3.client(
        's3',
        aws_access_key_id=AWS_ACCESS_KEY_ID,
        aws_secret_access_key=AWS_SECRET_ACCESS_KEY,
        region_name=AWS_REGION,
        config=Config(signature_version="s3v4")
    )

    app.state.firestore = firestore
    app.state.post_service = PostService(firestore)
    app.state.s3_service = S3Service(S3_BUCKET_NAME, s3_client, AWS_REGION)
    logger.info("Community API started")

    yield
    # Cleanup resources
    firestore.close()
    s3_client.close()
    firebase_admin.delete_app(firebase_app)
    logger.info("Community API stopped")


app = FastAPI(lifespan=lifespan)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every error leaves the API as {"error": message}
@app.exception_handler(CommunityError)
async def community_error_handler(request: Request, exc: CommunityError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


@app.get("/")
async def root():
    return {"message": "Community API is running"}


# Include routers
app.include_router(posts_router, prefix="/posts", tags=["posts"])
app.include_router(uploads_router, tags=["uploads"])


def run():
    uvicorn.run("main:app", host=HOST, port=PORT)


if __name__ == "__main__":
    run()

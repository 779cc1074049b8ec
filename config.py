import os

from dotenv import load_dotenv

load_dotenv()

# Firebase / Firestore
FIREBASE_CREDENTIALS = os.environ.get("FIREBASE_CREDENTIALS", "./firebase.json")
FIRESTORE_DATABASE = os.environ.get("FIRESTORE_DATABASE") or None
SESSION_COOKIE_NAME = os.environ.get("SESSION_COOKIE_NAME", "token")

# S3 image storage
S3_BUCKET_NAME = os.environ.get("S3_BUCKET_NAME")
AWS_REGION = os.environ.get("AWS_REGION", "us-east-2")
AWS_ACCESS_KEY_ID = os.environ.get("AWS_ACCESS_KEY_ID")
AWS_SECRET_ACCESS_KEY = os.environ.get("AWS_SECRET_ACCESS_KEY")
MAX_UPLOAD_MB = int(os.environ.get("MAX_UPLOAD_MB", "5"))

CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "8000"))

import os
from pathlib import Path
BASE_DIR = Path(__file__).resolve().parent

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL", f"sqlite:///{(BASE_DIR / 'coursio.db').as_posix()}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # course created for every new teacher account
    DEFAULT_TEACHER = os.getenv("DEFAULT_TEACHER", "Équipe Coursio")
    DEFAULT_CLASS = os.getenv("DEFAULT_CLASS", "Démonstration")
    DEFAULT_ROOM = os.getenv("DEFAULT_ROOM", "En ligne")
    DEFAULT_MODULE_NUMBER = os.getenv("DEFAULT_MODULE_NUMBER", "DEMO-001")
    DEFAULT_MODULE_NAME = os.getenv("DEFAULT_MODULE_NAME", "Atelier de planification")

class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    LOG_LEVEL = "DEBUG"

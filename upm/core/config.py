from typing import Dict

from pydantic import BaseModel
from pydantic_settings import BaseSettings


class DemoAccount(BaseModel):
    password: str
    role: str
    person_id: int
    name: str


class Settings(BaseSettings):
    APP_NAME: str = "Unified Patient Manager"
    VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./upm.db"
    SEED_DEMO_DATA: bool = True

    # Static demo credential table (plaintext, no tokens).
    # Login, request identity and the audit writer all resolve users here.
    DEMO_ACCOUNTS: Dict[str, DemoAccount] = {
        "dr.smith": DemoAccount(password="physician123", role="physician", person_id=1, name="Dr. Smith"),
        "john.doe": DemoAccount(password="patient123", role="patient", person_id=2, name="John Doe"),
        "nurse.jane": DemoAccount(password="nurse123", role="nurse", person_id=3, name="Nurse Jane"),
        "admin": DemoAccount(password="admin123", role="admin", person_id=4, name="Admin User"),
    }

    # Insurance submission
    INSURANCE_MOCK_MODE: bool = True  # Simulate the insurer in-process
    INSURANCE_MIN_DELAY_MS: int = 500
    INSURANCE_MAX_DELAY_MS: int = 2000
    INSURANCE_TIMEOUT: int = 10

    class Config:
        env_file = ".env"


settings = Settings()

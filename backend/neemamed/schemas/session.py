from datetime import datetime
from pydantic import BaseModel
from neemamed.schemas.account import Account


class Session(BaseModel):
    account: Account
    expires_at: datetime
    access_token: str

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def public_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "token_type": "bearer",
            "expires_at": self.expires_at.isoformat(),
            "account": self.account.public_dict(),
            "home_path": self.account.home_path,
        }

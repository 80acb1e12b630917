from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from typing import List
import uuid

app = FastAPI(title="Mock Mail Relay", version="1.0.0")
# Delivered messages, newest last
OUTBOX: List[dict] = []


class MailRequest(BaseModel):
    sender: str = Field("", alias="from")
    to: str
    subject: str
    text: str


@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/mail")
def send_mail(mail: MailRequest):
    if "@" not in mail.to:
        raise HTTPException(status_code=422, detail="invalid recipient")
    message_id = f"<{uuid.uuid4()}@mock-relay>"
    OUTBOX.append({"message_id": message_id, **mail.model_dump(by_alias=True)})
    return {"message_id": message_id}

@app.get("/mail")
def list_mail(): return {"messages": OUTBOX}

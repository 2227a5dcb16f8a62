import logging
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from typing import Optional

from app.core.config import settings
from app.db.deps import get_email_service
from app.schemas.schemas import PaymentSuccess
from app.services.email_service import Attachment, EmailDeliveryError, EmailService

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/send_mail")
async def send_contact_mail(
    name: str = Form(""),
    email: str = Form(""),
    subject: str = Form(""),
    message: str = Form(""),
    attachment: Optional[UploadFile] = File(None),
    mail: EmailService = Depends(get_email_service),
):
    if not name or not email or not subject or not message:
        raise HTTPException(status_code=400, detail="All fields are required.")
    if any("\r" in v or "\n" in v for v in (name, email, subject)):
        raise HTTPException(status_code=400, detail="Name, email and subject must be a single line.")

    file = None
    if attachment is not None and attachment.filename:
        content = await attachment.read()
        if len(content) > settings.MAX_FILE_SIZE:
            raise HTTPException(status_code=400, detail="Attachment too large.")
        file = Attachment(
            filename=attachment.filename,
            content=content,
            content_type=attachment.content_type or "application/octet-stream",
        )

    try:
        mail.send_contact_message(name=name, email=email, subject=subject, message=message, attachment=file)
    except EmailDeliveryError as e:
        logger.error(f"Contact email failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to send email")
    return {"message": "Email sent successfully"}

@router.post("/payment-success")
def payment_success(data: PaymentSuccess, mail: EmailService = Depends(get_email_service)):
    try:
        mail.send_payment_success(email=data.email, username=data.username, amount=data.amount)
    except EmailDeliveryError as e:
        logger.error(f"Payment confirmation email failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to send payment confirmation email.")
    return {"message": "Payment confirmation email sent successfully"}

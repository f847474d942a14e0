import logging
import re

import mailtrap as mt
import requests
from django.conf import settings

logger = logging.getLogger(__name__)


# -------------------------------
# INTERNAL: PHONE NORMALIZER
# -------------------------------
def _normalize_msisdn(contact: str) -> str:
    """
    Normalize to Indian MSISDN for 2Factor: digits only.
    Returns 91XXXXXXXXXX (12 digits) when possible.
    """
    digits = re.sub(r"\D", "", str(contact or ""))
    if len(digits) == 10:
        return "91" + digits
    if digits.startswith("91") and len(digits) == 12:
        return digits
    # Fall back to digits as-is; the provider may reject it.
    return digits


# -------------------------------
# VERIFICATION SMS
# -------------------------------
def send_verification_sms(mobile, alumni_id):
    """Tell the member their registration was verified. Returns True on provider success."""
    api_key = getattr(settings, "TWO_FACTOR_API_KEY", "")
    if not api_key or not mobile:
        logger.info("[sms] skipped for %s (no key or number)", alumni_id)
        return False

    phone = _normalize_msisdn(mobile)
    template = getattr(settings, "TWO_FACTOR_VERIFIED_TEMPLATE", "").strip()
    url = "https://2factor.in/API/R1/"
    data = {
        "module": "TRANS_SMS",
        "apikey": api_key,
        "to": phone,
        "from": getattr(settings, "TWO_FACTOR_SENDER_ID", "DTEAA"),
    }
    if template:
        data["templatename"] = template
        data["var1"] = alumni_id
    else:
        data["msg"] = f"Your DTEAA membership {alumni_id} has been verified. Welcome aboard!"

    try:
        res = requests.post(url, data=data, timeout=8)
        try:
            payload = res.json()
        except ValueError:
            payload = {"raw": res.text}

        # 2Factor typically returns {"Status": "Success", "Details": "..."}
        status_val = str(payload.get("Status") or payload.get("status") or "").lower()
        if res.status_code == 200 and status_val == "success":
            logger.info("[sms] verification SMS sent to %s", phone)
            return True
        logger.warning("[sms] failed for %s, HTTP=%s, Status=%s, Payload=%s",
                       phone, res.status_code, status_val, payload)
    except requests.RequestException:
        logger.exception("[sms] error sending verification SMS to %s", phone)
    return False


# -------------------------------
# VERIFICATION EMAIL
# -------------------------------
def send_verification_email(email, name, alumni_id):
    """Send the 'membership verified' email via Mailtrap. Returns True when the API call went out."""
    api_key = getattr(settings, "MAILTRAP_API_KEY", "")
    if not api_key or not email:
        logger.info("[email] skipped for %s (no key or address)", alumni_id)
        return False

    html = f"""
    <!DOCTYPE html>
    <html>
    <body style="font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; background-color: #FFF9EE;">
      <div style="background-color: #ffffff; max-width: 480px; margin: 30px auto; padding: 30px; border-radius: 10px;">
        <div style="font-size: 20px; font-weight: 600; color: #2E2E2E; text-align: center;">
          Welcome to DTEAA, {name}
        </div>
        <p style="font-size: 28px; font-weight: bold; color: #E7A700; text-align: center; margin: 20px 0;">
          {alumni_id}
        </p>
        <p style="font-size: 14px; color: #555555; text-align: center;">
          Your registration has been verified. Your alumni ID card is now available on the portal.
        </p>
      </div>
    </body>
    </html>
    """

    client = mt.MailtrapClient(token=api_key)
    sender_email = getattr(settings, "DEFAULT_FROM_EMAIL", "hello@dteaa.org")
    if sender_email.endswith("demomailtrap.co"):
        logger.warning("[email] DEFAULT_FROM_EMAIL looks like a Mailtrap sandbox sender; "
                       "mail may be captured and not delivered.")

    mail = mt.Mail(
        sender=mt.Address(email=sender_email, name="DTEAA Alumni Portal"),
        to=[mt.Address(email=email)],
        subject="Your DTEAA membership is verified",
        text=f"Hi {name}, your DTEAA membership {alumni_id} has been verified.",
        html=html,
        category="Membership Verification",
    )

    try:
        response = client.send(mail)
        logger.info("[email] verification email sent to %s: %s", email, response)
        return True
    except Exception:
        # Provider SDK errors vary by version; the verification itself already committed.
        logger.exception("[email] error sending verification email to %s", email)
        return False


class MembershipNotifier:
    """Best-effort member notifications; failures never undo the admin action."""

    def member_verified(self, profile):
        name = profile.personal.full_name or profile.alumni_id
        return {
            'email': send_verification_email(profile.personal.email, name, profile.alumni_id),
            'sms': send_verification_sms(profile.contact.mobile, profile.alumni_id),
        }

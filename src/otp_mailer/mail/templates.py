"""Message bodies for the emails this service sends."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EmailContent:
    subject: str
    html: str
    text: str


def otp_email(app_name: str, code: str, ttl_minutes: int) -> EmailContent:
    """Verification-code email."""
    subject = f"🔐 Your {app_name} Verification Code"
    html = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #000; color: #fff;">
        <div style="text-align: center; margin-bottom: 30px;">
          <h1 style="color: #22c55e; margin: 0; font-size: 24px;">{app_name}</h1>
          <p style="color: #666; margin: 10px 0;">Verification Code</p>
        </div>
        <div style="background-color: #111; border: 2px solid #22c55e; border-radius: 10px; padding: 30px; text-align: center; margin: 20px 0;">
          <h2 style="color: #22c55e; margin: 0 0 20px 0; font-size: 18px;">Your Verification Code</h2>
          <div style="background-color: #000; border: 1px solid #22c55e; border-radius: 8px; padding: 20px; margin: 20px 0;">
            <span style="font-size: 32px; font-weight: bold; color: #22c55e; letter-spacing: 8px; font-family: 'Courier New', monospace;">{code}</span>
          </div>
          <p style="color: #fbbf24; margin: 10px 0; font-size: 14px;">⚠️ This code will expire in {ttl_minutes} minutes</p>
        </div>
        <div style="margin-top: 30px; padding: 20px; background-color: #111; border-radius: 8px;">
          <p style="color: #666; margin: 0; font-size: 14px; line-height: 1.5;">
            If you didn't request this verification code, please ignore this email.
          </p>
        </div>
      </div>
    """
    text = (
        f"{app_name} - Verification Code\n\n"
        f"Your verification code is: {code}\n\n"
        f"This code will expire in {ttl_minutes} minutes.\n\n"
        "If you didn't request this code, please ignore this email.\n\n"
        "Best regards,\n"
        f"The {app_name} Team"
    )
    return EmailContent(subject=subject, html=html, text=text)


def delivery_check_email(app_name: str) -> EmailContent:
    """Fixed message used to check that delivery is configured."""
    subject = f"🧪 {app_name} - Email Service Test"
    text = (
        f"This is a test email from the {app_name} email service. "
        "If you receive this, your email setup is working correctly!"
    )
    html = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #000; color: #fff;">
        <h1 style="color: #22c55e; text-align: center;">🧪 Email Service Test</h1>
        <p style="color: #fff; text-align: center;">This is a test email from the {app_name} email service.</p>
        <p style="color: #22c55e; text-align: center; font-weight: bold;">✅ If you receive this, your email setup is working correctly!</p>
      </div>
    """
    return EmailContent(subject=subject, html=html, text=text)

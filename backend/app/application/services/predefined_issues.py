"""Canned downtime templates offered to reporters when filling in a new report."""

from datetime import datetime

from app.application.services.time_normalizer import storage_now

APP_SERVICE_CATEGORIES = [
    "SEND MONEY",
    "CASHOUT",
    "BILL PAYMENT",
    "EMI PAYMENT",
    "MERCHANT PAYMENT",
    "MOBILE RECHARGE",
    "ADD MONEY",
    "TRANSFER MONEY",
    "B2B",
    "B2M",
    "CASHIN",
    "TRANSACTION HISTORY",
    "RE-SUBMIT KYC",
    "REGISTRATION",
    "DEVICE CHANGE",
]
OTP_CATEGORIES = ["RE-SUBMIT KYC", "REGISTRATION", "DEVICE CHANGE", "E-COM PAYMENT"]
FULL_SYSTEM_CATEGORIES = APP_SERVICE_CATEGORIES[:14] + [
    "E-COM PAYMENT",
    "DEVICE CHANGE",
    "PROFILE VISIBILITY",
    "BLOCK OPERATION",
    "LIFTING",
    "REFUND",
    "DISBURSEMENT",
    "REVERSAL",
    "CLAWBACK",
    "KYC OPERATIONS",
    "PARTNER REGISTRATION",
    "REMITTANCE",
    "BANK TO NAGAD",
]

SMS_OPERATORS = (
    ("sms-otp-robi", "Robi/Airtel", "ROBI/AIRTEL"),
    ("sms-otp-gp", "Grameenphone", "GRAMEENPHONE"),
    ("sms-otp-banglalink", "Banglalink", "BANGLALINK"),
    ("sms-otp-teletalk", "Teletalk", "TELETALK"),
)


def _sms_outage(issue_id: str, operator: str, mno: str) -> dict:
    title = f"SMS/OTP Outage For {operator}"
    return {
        "id": issue_id,
        "title": title,
        "description": f"SMS/OTP service outage specific to {operator} network",
        "categories": list(OTP_CATEGORIES),
        "template": {
            "issueTitle": title,
            "affectedChannel": ["SMS"],
            "affectedMNO": [mno],
            "affectedService": ["E-COM PAYMENT", "REGISTRATION", "KYC"],
            "impactType": "FULL",
            "modality": "UNPLANNED",
            "reliabilityImpacted": "YES",
            "concern": "EXTERNAL",
            "systemUnavailability": "EXTERNAL",
            "reason": f"{operator} network issues causing SMS delivery failure",
            "resolution": f"{operator} network issues resolved",
        },
    }


def current_month_year(now: datetime | None = None) -> str:
    return (now or storage_now()).strftime("%B %Y")


def list_predefined_issues(now: datetime | None = None) -> list[dict]:
    month_year = current_month_year(now)
    issues = [
        {
            "id": "delay-app-login",
            "title": "Delay in APP Login Response Time",
            "description": "Slow login response times affecting all APP services",
            "categories": list(APP_SERVICE_CATEGORIES),
            "template": {
                "issueTitle": "Delay in APP Login Response Time",
                "affectedChannel": ["APP"],
                "affectedPersona": ["ALL"],
                "affectedService": ["ALL"],
                "impactType": "PARTIAL",
                "modality": "UNPLANNED",
                "reliabilityImpacted": "NO",
                "concern": "INTERNAL",
                "systemUnavailability": "SYSTEM",
                "reason": "High server load causing delayed response times in APP login",
                "resolution": "Server resources optimized and load balanced",
            },
        },
        {
            "id": "sms-otp-all-mno",
            "title": "SMS/OTP Outage For All MNO",
            "description": "Complete SMS/OTP service outage affecting all mobile operators",
            "categories": list(OTP_CATEGORIES),
            "template": {
                "issueTitle": "SMS/OTP Outage For All MNO",
                "affectedChannel": ["SMS"],
                "affectedMNO": ["ALL"],
                "affectedService": ["E-COM PAYMENT", "REGISTRATION", "KYC"],
                "impactType": "FULL",
                "modality": "UNPLANNED",
                "reliabilityImpacted": "YES",
                "concern": "INTERNAL",
                "systemUnavailability": "SMS GATEWAY",
                "reason": "SMS gateway service disruption affecting all MNOs",
                "resolution": "SMS gateway service restored and failover implemented",
            },
        },
    ]
    issues.extend(_sms_outage(*operator) for operator in SMS_OPERATORS)
    issues.append(
        {
            "id": "db-maintenance",
            "title": "Database Maintenance Activity(Full DFS System Down)",
            "description": "Planned database maintenance affecting all DFS services",
            "categories": list(FULL_SYSTEM_CATEGORIES),
            "template": {
                "issueTitle": "Database Maintenance Activity(Full DFS System Down)",
                "affectedChannel": ["ALL"],
                "impactType": "FULL",
                "modality": "PLANNED",
                "reliabilityImpacted": "NO",
                "concern": "INTERNAL",
                "systemUnavailability": "DATABASE",
                "reason": f"Planned database maintenance activity for {month_year}",
                "resolution": "Database maintenance completed successfully",
            },
        }
    )
    return issues

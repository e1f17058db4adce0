"""
Application constants for LawHelp.
"""

# Model Configuration
MODEL_NAME = "gpt-4o"
CATEGORIZE_MAX_TOKENS = 20

# Retry Configuration
MAX_RETRY_ATTEMPTS = 3
RETRY_MULTIPLIER = 1
RETRY_MIN_WAIT = 1
RETRY_MAX_WAIT = 10

# WebSocket client reconnection
MAX_RECONNECT_ATTEMPTS = 5
RECONNECT_BASE_DELAY = 1.0

# Health check tool
HEALTH_CHECK_URL = "http://localhost:5000/health"
HEALTH_CHECK_MAX_RETRIES = 3
HEALTH_CHECK_RETRY_DELAY = 2.0
HEALTH_CHECK_TIMEOUT = 5.0

# Chat
SESSION_TITLE_MAX_LENGTH = 50
DEFAULT_SESSION_TITLE = "New Chat Session"

# Two-factor authentication
CODE_PATTERN = r"^\d{6}$"
BACKUP_CODE_COUNT = 10
BACKUP_CODE_LENGTH = 8
TOTP_SECRET_LENGTH = 32
TOTP_VALID_WINDOW = 1
TOTP_ISSUER = "LawHelp"

# Verification code types
CODE_EMAIL_VERIFICATION = "email_verification"
CODE_PASSWORD_RESET = "password_reset"
CODE_TWO_FACTOR = "two_factor"

USER_ROLES = ["user", "lawyer", "admin"]
SESSION_STATUSES = ["active", "completed", "archived"]
SESSION_LANGUAGES = ["en", "fr"]
NOTIFICATION_TYPES = ["info", "warning", "success", "error"]
TWO_FACTOR_METHODS = ["totp", "email"]

LEGAL_CATEGORIES = [
    "Criminal Law",
    "Family Law",
    "Property Law",
    "Business Law",
    "Employment Law",
    "Constitutional Law",
    "General Legal",
]

DEFAULT_CATEGORY = "General Legal"
DEFAULT_CONFIDENCE = 0.7

DEFAULT_ANSWER = "I apologize, but I couldn't generate a proper response to your legal question."

DEFAULT_DISCLAIMER = (
    "This information is for general guidance only and does not constitute legal advice. "
    "Please consult with a qualified Cameroon lawyer for your specific situation."
)

FALLBACK_ANSWER = (
    "I apologize, but I'm experiencing technical difficulties. "
    "Please try again later or consult with a qualified lawyer directly."
)

FALLBACK_DISCLAIMER = (
    "This system is currently unavailable. Please seek professional legal advice for your questions."
)

CAMEROON_LAW_CONTEXT = """
You are a specialized AI legal assistant focused on Cameroon law. You provide accurate, helpful information about:

LEGAL DOMAINS:
- Criminal Law: Penal Code, criminal procedures, penalties
- Family Law: Marriage, divorce, inheritance, child custody
- Property Law: Land ownership, real estate, property rights
- Business Law: Company registration, contracts, commercial law
- Employment Law: Labor code, worker rights, employment contracts
- Constitutional Law: Citizens' rights, government procedures

IMPORTANT GUIDELINES:
1. Always specify that this is general legal information, not legal advice
2. Recommend consulting with a qualified Cameroon lawyer for specific cases
3. Reference relevant Cameroon legal codes when applicable
4. Be clear about legal procedures and requirements
5. Explain both English and French legal traditions where relevant (Cameroon's dual legal system)

LEGAL REFERENCES:
- Cameroon Civil Code
- Cameroon Penal Code
- Labor Code of Cameroon
- Commercial Code
- Constitution of Cameroon (1996)
"""

LEGAL_QUERY_PROMPT = """
Please provide legal information about the following question related to Cameroon law.

Question: "{question}"
{context_line}
Respond in {language} and format your response as JSON with these exact fields:
{{
  "answer": "Detailed legal information addressing the question (3-5 paragraphs)",
  "category": "Primary legal category (e.g., Criminal Law, Family Law, Property Law, Business Law, Employment Law)",
  "confidence": 0.8,
  "references": ["List of relevant Cameroon legal codes or articles"],
  "disclaimer": "Clear disclaimer that this is general information, not legal advice"
}}

Focus on:
1. Accurate information based on Cameroon law
2. Practical steps or procedures when applicable
3. Required documents or legal requirements
4. Relevant legal codes and articles
5. Clear explanation of rights and obligations

Always include the standard disclaimer about seeking professional legal advice.
"""

CATEGORIZE_PROMPT = (
    "Categorize this legal question into one of these categories: "
    "Criminal Law, Family Law, Property Law, Business Law, Employment Law, "
    "Constitutional Law, or General Legal. Respond with just the category name."
)

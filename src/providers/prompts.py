"""
Prompt templates for transaction extraction.

Both prompts enumerate the closed category lists so the model is
steered towards the taxonomy; the normalizer still enforces it.
"""

from typing import Optional

from src.models.transaction import EXPENSE_CATEGORIES, INCOME_CATEGORIES


def _quoted(categories: tuple[str, ...]) -> str:
    return ", ".join(f'"{category}"' for category in categories)


IMAGE_ANALYSIS_PROMPT = f"""Analyze this receipt/transaction image for an interior design project and extract the following information in JSON format:
{{
  "amount": number (total amount),
  "type": "income" or "expense",
  "category": string (MUST be one of the categories listed below),
  "subcategory": string (optional, more specific label),
  "description": string (brief description of what this payment is for),
  "vendorName": string (merchant/vendor name or recipient name),
  "transactionDate": string (date in YYYY-MM-DD format),
  "paymentMethod": string (cash, credit card, debit card, UPI, cheque, etc.),
  "confidence": number (0-1, your confidence in this analysis)
}}

Categories:
  Income: {_quoted(INCOME_CATEGORIES)}
  Expense: {_quoted(EXPENSE_CATEGORIES)}

Please analyze the image and extract accurate information. Focus on:
- The total amount paid/received
- Whether this is income (money received) or expense (money paid)
- Who the vendor/recipient is
- What the payment is for
- Payment method if visible

If you cannot determine a field with confidence, omit it or use null.
Respond with ONLY the JSON object."""


TEXT_EXTRACTION_TEMPLATE = """Analyze this transaction message and extract details in JSON format.

Message: "{message}"

Extract:
- amount: numeric value (convert words like "lakh" to 100000, "thousand" to 1000, "crore" to 10000000)
- type: "income" or "expense"
- category: MUST be one of these predefined categories:
  Income: {income}
  Expense: {expense}
- description: brief description
- vendorName: vendor/client name if mentioned
- confidence: 0-1 score

Examples:
"Received 1 lakh" → {{"amount": 100000, "type": "income", "category": "Current Account", "description": "Payment received", "confidence": 0.9}}
"Paid 50000 for cement" → {{"amount": 50000, "type": "expense", "category": "Construction Material", "description": "Cement purchase", "confidence": 0.9}}
"Spent 2.5 lakh on labour" → {{"amount": 250000, "type": "expense", "category": "Labour", "description": "Labour payment", "confidence": 0.9}}
"Got cheque from client" → {{"amount": 0, "type": "income", "category": "Cheque", "description": "Cheque received from client", "confidence": 0.7}}
"Paid architect 80 thousand" → {{"amount": 80000, "type": "expense", "category": "Designer/Architect", "description": "Architect fee", "confidence": 0.9}}

IMPORTANT: Use ONLY the predefined categories listed above. Do not create new categories.

Respond with ONLY the JSON object, no other text."""


def build_text_extraction_prompt(message: str) -> str:
    """Fill the extraction template with the user's message."""
    return TEXT_EXTRACTION_TEMPLATE.format(
        message=message,
        income=_quoted(INCOME_CATEGORIES),
        expense=_quoted(EXPENSE_CATEGORIES),
    )


def build_chat_prompt(message: str, context: Optional[str] = None) -> str:
    """Prefix a chat message with its context block, if any."""
    if context:
        return f"Context: {context}\n\nUser: {message}"
    return message

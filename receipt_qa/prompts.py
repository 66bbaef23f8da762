# ---------- PROMPTS ----------

INVOICE_EXPERT_INSTRUCTION = (
    "You are an expert in understanding invoices and receipts. "
    "You will receive an image of an invoice or receipt and you will have to "
    "answer questions based on that image."
)

QUESTION_SEPARATOR = " Question: "


def compose(question: str) -> str:
    """Prefix the user's question with the fixed invoice-expert instruction."""
    return f"{INVOICE_EXPERT_INSTRUCTION}{QUESTION_SEPARATOR}{question}"

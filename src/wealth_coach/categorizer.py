"""Keyword-based transaction categorization."""

from typing import Literal

from .rules import RuleMatch, RuleTable

INCOME_CATEGORIES = ("Salary", "Freelance", "Investment", "Refund")
DEFAULT_EXPENSE_CATEGORY = "Other"
DEFAULT_INCOME_CATEGORY = "Other Income"

# Table order matters: the first category with a matching keyword wins.
CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "Dining": [
        "restaurant", "cafe", "coffee", "starbucks", "dunkin", "mcdonald", "burger", "pizza",
        "subway", "chipotle", "kfc", "taco bell", "wendy", "chick-fil-a", "panera", "domino",
        "papa john", "diner", "bistro", "grill", "kitchen", "eatery", "bar & grill",
        "steakhouse", "sushi", "thai", "chinese", "italian", "mexican", "food delivery",
        "uber eats", "doordash", "grubhub", "postmates", "seamless", "deliveroo", "foodpanda",
        "grab food", "dining", "meal",
    ],
    "Groceries": [
        "walmart", "target", "costco", "safeway", "kroger", "whole foods", "trader joe", "aldi",
        "publix", "sprouts", "food lion", "stop & shop", "giant", "albertsons", "grocery",
        "supermarket", "market", "mart", "fresh", "organic", "produce", "wegmans",
        "harris teeter", "smiths", "ralphs", "vons", "pavilions", "carrefour", "tesco",
        "sainsbury", "asda", "lidl", "mercadona", "lotus", "big c",
    ],
    "Transportation": [
        "shell", "chevron", "exxon", "bp", "mobil", "texaco", "arco", "valero", "citgo",
        "gas station", "fuel", "petrol", "uber", "lyft", "taxi", "cab", "transit", "metro",
        "bus", "train", "parking", "toll", "car wash", "car repair", "auto", "mechanic", "tire",
        "oil change", "smog check", "dmv", "registration", "grab", "gojek", "ola", "didi",
        "bolt", "via", "public transport", "mrt", "lrt",
    ],
    "Shopping": [
        "amazon", "ebay", "etsy", "bestbuy", "apple store", "nike", "adidas", "h&m", "zara",
        "gap", "old navy", "forever 21", "uniqlo", "nordstrom", "macy", "kohl", "jcpenney",
        "dillard", "sephora", "ulta", "home depot", "lowe", "ikea", "wayfair", "overstock",
        "bed bath", "container store", "aliexpress", "shopee", "lazada", "tokopedia",
        "mercado libre", "clothing", "apparel", "fashion", "shoes", "accessories", "jewelry",
        "cosmetics",
    ],
    "Entertainment": [
        "netflix", "hulu", "disney+", "hbo", "amazon prime", "spotify", "apple music",
        "youtube", "twitch", "playstation", "xbox", "nintendo", "steam", "epic games",
        "cinema", "theater", "movie", "amc", "regal", "concert", "ticket", "event", "pandora",
        "tidal", "soundcloud", "audible", "kindle", "paramount+", "peacock", "showtime",
        "starz", "crunchyroll", "gaming", "game", "entertainment", "streaming", "subscription",
    ],
    "Utilities": [
        "electric", "water", "gas company", "power", "utility", "sewage", "garbage",
        "waste management", "pg&e", "con edison", "duke energy", "internet", "cable", "phone",
        "wireless", "verizon", "at&t", "t-mobile", "comcast", "spectrum", "xfinity",
        "centurylink", "broadband", "wifi", "mobile", "cellular", "landline", "bill",
    ],
    "Healthcare": [
        "pharmacy", "cvs", "walgreens", "rite aid", "drug", "prescription", "medicine",
        "doctor", "dentist", "hospital", "clinic", "medical", "health", "urgent care",
        "laboratory", "radiology", "therapy", "counseling", "psychiatrist", "psychologist",
        "optometry", "vision", "glasses", "contact lens", "hearing", "chiropractor",
        "acupuncture", "massage", "wellness", "gym", "fitness",
    ],
    "Rent": [
        "rent", "lease", "landlord", "property management", "apartment", "housing", "mortgage",
        "home loan", "property tax", "hoa", "homeowner", "condo fee",
    ],
    "Insurance": [
        "insurance", "geico", "state farm", "allstate", "progressive", "liberty mutual",
        "farmers", "nationwide", "usaa", "metlife", "prudential", "aetna", "blue cross",
        "cigna", "humana", "kaiser", "united health",
    ],
    "Education": [
        "tuition", "university", "college", "school", "course", "udemy", "coursera",
        "masterclass", "skillshare", "linkedin learning", "pluralsight", "datacamp", "books",
        "textbook", "student", "education", "learning", "training",
    ],
    "Personal Care": [
        "salon", "barber", "haircut", "spa", "nail", "beauty", "cosmetic", "makeup",
        "skincare", "fragrance", "perfume", "grooming", "shave", "wax", "facial",
    ],
    "Travel": [
        "airline", "flight", "hotel", "airbnb", "booking.com", "expedia", "marriott", "hilton",
        "hyatt", "ihg", "travel", "vacation", "trip", "resort", "hostel", "motel",
        "rental car", "hertz", "enterprise", "avis", "agoda", "traveloka", "cruise", "airport",
    ],
    "Subscriptions": [
        "patreon", "substack", "medium", "new york times", "washington post",
        "wall street journal", "economist", "financial times", "bloomberg", "membership",
        "adobe", "microsoft 365", "office 365", "dropbox", "google one", "icloud",
        "cloud storage", "software subscription", "saas", "monthly subscription",
    ],
    "Pets": [
        "petco", "petsmart", "pet", "veterinary", "vet", "animal", "dog", "cat", "pet food",
        "pet supplies", "kennel",
    ],
    "Charity": [
        "donation", "charity", "foundation", "nonprofit", "red cross", "unicef",
        "salvation army", "goodwill", "church", "temple", "mosque", "synagogue", "tithe",
        "relief fund",
    ],
    "Fees": [
        "fee", "service charge", "atm", "overdraft", "late fee", "penalty", "interest",
        "finance charge", "transaction fee", "processing fee", "bank fee",
    ],
    "Salary": [
        "salary", "payroll", "paycheck", "wage", "direct deposit", "employer", "monthly pay",
        "bi-weekly", "weekly pay", "compensation",
    ],
    "Freelance": [
        "freelance", "contractor", "consulting", "gig", "upwork", "fiverr", "contract work",
        "client payment", "invoice payment", "project payment",
    ],
    "Investment": [
        "dividend", "capital gain", "interest income", "stock sale", "crypto profit",
        "rental income", "investment return", "profit", "passive income",
    ],
    "Refund": ["refund", "reimbursement", "cashback", "rebate", "return", "credit"],
}

CATEGORY_TABLE = RuleTable.from_mapping(CATEGORY_KEYWORDS)
_INCOME_TABLE = CATEGORY_TABLE.subset(INCOME_CATEGORIES)
_EXPENSE_TABLE = CATEGORY_TABLE.subset(INCOME_CATEGORIES, exclude=True)

TransactionKind = Literal["income", "expense", "transfer"]


def categorize_transaction(description: str, amount: float, type: TransactionKind) -> str:
    """Pick a category for a transaction from its description.

    Income only searches income categories and falls back to ``Other Income``;
    expenses search every other category in table order and fall back to
    ``Other``. ``amount`` is accepted for API symmetry and does not affect the
    result.
    """
    if not description or not description.strip():
        return DEFAULT_EXPENSE_CATEGORY

    if type == "income":
        return _INCOME_TABLE.first_match(description) or DEFAULT_INCOME_CATEGORY
    if type == "expense":
        return _EXPENSE_TABLE.first_match(description) or DEFAULT_EXPENSE_CATEGORY
    return DEFAULT_EXPENSE_CATEGORY


def suggest_categories(description: str, type: TransactionKind) -> list[RuleMatch]:
    """All matching categories, word-boundary matches ranked before substring matches."""
    if not description or not description.strip():
        return []

    if type == "income":
        table = _INCOME_TABLE
    elif type == "expense":
        table = _EXPENSE_TABLE
    else:
        table = CATEGORY_TABLE

    matches = table.match_strength(description.strip())
    # sorted() is stable, so table order is kept within each confidence level
    return sorted(matches, key=lambda m: 0 if m.strength == "high" else 1)


def available_categories(type: TransactionKind) -> list[str]:
    if type == "income":
        return [*INCOME_CATEGORIES, DEFAULT_INCOME_CATEGORY]
    if type == "expense":
        return [*_EXPENSE_TABLE.labels, DEFAULT_EXPENSE_CATEGORY]
    return [*CATEGORY_TABLE.labels, DEFAULT_EXPENSE_CATEGORY, DEFAULT_INCOME_CATEGORY]


def is_valid_category(category: str, type: TransactionKind) -> bool:
    return category in available_categories(type)

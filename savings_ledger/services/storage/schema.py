"""
Relational schema and reference data.

Four tables: categories, transactions, savings_goals, goal_contributions.
Children reference their parent by id only; category metadata is joined
in at read time.
"""

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS categories (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        type TEXT NOT NULL CHECK (type IN ('income', 'expense')),
        color TEXT NOT NULL,
        icon TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS transactions (
        id TEXT PRIMARY KEY,
        amount REAL NOT NULL CHECK (amount > 0),
        description TEXT NOT NULL,
        category_id TEXT NOT NULL,
        type TEXT NOT NULL CHECK (type IN ('income', 'expense')),
        date TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (category_id) REFERENCES categories (id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS savings_goals (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        target_amount REAL NOT NULL CHECK (target_amount > 0),
        current_amount REAL NOT NULL DEFAULT 0 CHECK (current_amount >= 0),
        target_date TEXT,
        description TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS goal_contributions (
        id TEXT PRIMARY KEY,
        goal_id TEXT NOT NULL,
        amount REAL NOT NULL CHECK (amount > 0),
        date TEXT NOT NULL,
        description TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (goal_id) REFERENCES savings_goals (id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions (date)",
    "CREATE INDEX IF NOT EXISTS idx_transactions_category ON transactions (category_id)",
    "CREATE INDEX IF NOT EXISTS idx_goal_contributions_goal ON goal_contributions (goal_id)",
]


# (id, name, type, color, icon)
DEFAULT_CATEGORIES = [
    ("income-salary", "Salary", "income", "#22c55e", "💰"),
    ("income-freelance", "Freelance", "income", "#3b82f6", "💻"),
    ("income-investment", "Investments", "income", "#8b5cf6", "📈"),
    ("income-other", "Other Income", "income", "#06b6d4", "💵"),
    ("expense-food", "Food & Dining", "expense", "#ef4444", "🍽️"),
    ("expense-transport", "Transportation", "expense", "#f59e0b", "🚗"),
    ("expense-housing", "Housing", "expense", "#8b5cf6", "🏠"),
    ("expense-utilities", "Utilities", "expense", "#06b6d4", "⚡"),
    ("expense-entertainment", "Entertainment", "expense", "#ec4899", "🎬"),
    ("expense-healthcare", "Healthcare", "expense", "#10b981", "⚕️"),
    ("expense-shopping", "Shopping", "expense", "#f97316", "🛍️"),
    ("expense-education", "Education", "expense", "#3b82f6", "📚"),
    ("expense-other", "Other Expenses", "expense", "#6b7280", "💸"),
]

INSERT_CATEGORY = """
    INSERT INTO categories (id, name, type, color, icon, created_at, updated_at)
    VALUES (:id, :name, :type, :color, :icon, :created_at, :updated_at)
"""

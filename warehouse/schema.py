SCHEMA_SQL = r"""
-- Deliveries (one row per received line item against an LPO)
CREATE TABLE IF NOT EXISTS commodities_delivered (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  lpo_number TEXT,                       -- not unique: one LPO may carry many lines
  item_code TEXT NOT NULL,
  receipt_date TEXT NOT NULL,            -- ISO date
  supplier_name TEXT NOT NULL,
  level1_category TEXT NOT NULL,
  level2_category TEXT NOT NULL,
  batch_no TEXT,
  expiry_date TEXT,                      -- ISO date, optional
  qty_on_hand REAL NOT NULL DEFAULT 0,
  unit_cost REAL NOT NULL DEFAULT 0,
  total_sales REAL NOT NULL DEFAULT 0    -- tracked independently of qty * cost
);

-- Issuances (one row per dispensing event)
CREATE TABLE IF NOT EXISTS commodities_issued (
  issue_id TEXT PRIMARY KEY,
  lpo_number TEXT,                       -- matched by value, may not exist in deliveries
  item_code TEXT NOT NULL,
  issue_date TEXT NOT NULL,              -- ISO date
  issued_to TEXT,
  issued_quantity REAL NOT NULL DEFAULT 0,
  total_cost REAL NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS ix_delivered_lpo ON commodities_delivered(lpo_number);
CREATE INDEX IF NOT EXISTS ix_issued_lpo ON commodities_issued(lpo_number);
"""

SCHEMA_SQL = r"""
-- Ledgers (business partners: weavers, vendors, stitchers)
CREATE TABLE IF NOT EXISTS ledgers (
  ledger_id TEXT PRIMARY KEY,            -- BNG-LGR-...
  business_name TEXT NOT NULL,
  contact_person_name TEXT,
  mobile_number TEXT,
  email TEXT,
  address TEXT,
  city TEXT,
  district TEXT,
  state TEXT,
  country TEXT,
  zip_code TEXT,
  gst_number TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);

-- Weaver challans (raw-material receipt: one receipt = one batch)
CREATE TABLE IF NOT EXISTS weaver_challans (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  challan_date TEXT NOT NULL,            -- ISO date
  batch_number TEXT NOT NULL UNIQUE,     -- BNYYYYMMDDNNN
  challan_no TEXT NOT NULL UNIQUE,       -- BNG-CH-YYYYMMDD-NNN
  ms_party_name TEXT NOT NULL,
  ledger_id TEXT,
  delivery_at TEXT,
  bill_no TEXT,

  total_grey_mtr REAL NOT NULL,
  fold_cm REAL,
  width_inch REAL,
  taka INTEGER NOT NULL DEFAULT 1,
  taka_details TEXT,                     -- JSON [{taka_number, meters}]

  transport_name TEXT,
  lr_number TEXT,
  transport_charge REAL,

  quality_details TEXT,                  -- JSON [{quality_name, quantity, rate}]

  -- Vendor billing (credited to the ledger with GST)
  vendor_ledger_id TEXT,
  vendor_invoice_number TEXT,
  vendor_amount REAL,
  sgst TEXT,                             -- '9%' / 'Not Applicable'
  cgst TEXT,
  igst TEXT,

  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,

  FOREIGN KEY (ledger_id) REFERENCES ledgers(ledger_id)
);

-- Shorting (quantity reduction against one weaver challan)
CREATE TABLE IF NOT EXISTS shorting_entries (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  entry_date TEXT NOT NULL,
  ledger_id TEXT,
  weaver_challan_id INTEGER NOT NULL,
  quality_name TEXT NOT NULL,
  shorting_qty REAL NOT NULL,
  weaver_challan_qty REAL NOT NULL,      -- snapshot of the challan quantity
  created_at TEXT NOT NULL,
  FOREIGN KEY (ledger_id) REFERENCES ledgers(ledger_id),
  FOREIGN KEY (weaver_challan_id) REFERENCES weaver_challans(id) ON DELETE CASCADE
);

-- Stitching (isteaching) challans: production output in pieces
CREATE TABLE IF NOT EXISTS isteaching_challans (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  date TEXT NOT NULL,
  challan_no TEXT NOT NULL UNIQUE,       -- SVH-CH-YYYYMMDD-NNN
  ledger_id TEXT,
  quality TEXT NOT NULL,
  quantity INTEGER NOT NULL,

  selected_product_id INTEGER,
  product_name TEXT,
  product_sku TEXT,
  product_size TEXT,                     -- JSON [{size, quantity}]

  transport_name TEXT,
  lr_number TEXT,
  transport_charge REAL,

  cloth_type TEXT,                       -- JSON ["TOP", "BOTTOM"]
  top_qty REAL,
  top_pcs_qty REAL,                      -- metres per top piece
  bottom_qty REAL,
  bottom_pcs_qty REAL,                   -- metres per bottom piece
  both_selected INTEGER NOT NULL DEFAULT 0,
  both_top_qty REAL,
  both_bottom_qty REAL,

  inventory_classification TEXT NOT NULL DEFAULT 'unclassified',

  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  FOREIGN KEY (ledger_id) REFERENCES ledgers(ledger_id),
  FOREIGN KEY (selected_product_id) REFERENCES products(id)
);

-- A stitching challan can draw from several batches
CREATE TABLE IF NOT EXISTS isteaching_challan_batches (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  challan_id INTEGER NOT NULL,
  batch_number TEXT NOT NULL,
  UNIQUE (challan_id, batch_number),
  FOREIGN KEY (challan_id) REFERENCES isteaching_challans(id) ON DELETE CASCADE
);

-- Expenses against a batch number or a stitching challan number
CREATE TABLE IF NOT EXISTS expenses (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  expense_date TEXT NOT NULL,
  challan_no TEXT NOT NULL,
  ledger_id TEXT,                        -- auto-detected from the challan
  manual_ledger_id TEXT,                 -- manual override
  expense_for TEXT NOT NULL,             -- JSON list of categories
  other_expense_description TEXT,
  amount_before_gst REAL NOT NULL,
  sgst TEXT NOT NULL DEFAULT 'Not Applicable',
  cgst TEXT NOT NULL DEFAULT 'Not Applicable',
  igst TEXT NOT NULL DEFAULT 'Not Applicable',
  cost REAL NOT NULL,                    -- amount_before_gst + GST
  created_at TEXT NOT NULL
);

-- Payment vouchers
CREATE TABLE IF NOT EXISTS payment_vouchers (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  date TEXT NOT NULL,
  ledger_id TEXT,
  payment_for TEXT NOT NULL,
  payment_type TEXT NOT NULL,            -- Credit / Debit
  amount REAL NOT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  FOREIGN KEY (ledger_id) REFERENCES ledgers(ledger_id)
);

-- Products (finished-goods catalogue)
CREATE TABLE IF NOT EXISTS products (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  product_name TEXT NOT NULL,
  product_sku TEXT NOT NULL UNIQUE,
  product_category TEXT NOT NULL,
  product_sub_category TEXT,
  product_size TEXT,                     -- JSON [{size, quantity}]
  product_color TEXT,
  product_description TEXT,
  product_material TEXT,
  product_brand TEXT,
  product_country TEXT,
  product_status TEXT NOT NULL DEFAULT 'Active',
  product_qty INTEGER,
  wash_care TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);

-- Purchase orders
CREATE TABLE IF NOT EXISTS purchase_orders (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  po_number TEXT NOT NULL UNIQUE,
  po_date TEXT NOT NULL,
  supplier_name TEXT NOT NULL,
  ledger_id TEXT,
  items TEXT NOT NULL DEFAULT '[]',      -- JSON [{item_name, quantity, unit_price, total_price}]
  total_amount REAL NOT NULL DEFAULT 0,
  status TEXT NOT NULL DEFAULT 'Draft',
  description TEXT,
  delivery_date TEXT,
  terms_conditions TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  FOREIGN KEY (ledger_id) REFERENCES ledgers(ledger_id)
);

-- Field-level edit history for any entity
CREATE TABLE IF NOT EXISTS edit_logs (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  entity TEXT NOT NULL,                  -- 'ledger' / 'weaver_challan' / ...
  entity_id TEXT NOT NULL,
  changed_at TEXT NOT NULL,
  changes TEXT NOT NULL                  -- JSON {field: {old, new}}
);
"""

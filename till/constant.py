"""Editable static catalog, shop and category configuration."""

from __future__ import annotations

COMPANY_PROFILE: dict[str, str] = {
    "name": "Sharma General Store",
    "address": "14 Station Road",
    "city": "Pune",
    "state": "Maharashtra",
    "pincode": "411001",
    "phone": "9822012345",
    "gstin": "27AAPFS1234K1Z5",
    "upi_id": "sharmastore@upi",
}

# Seeded into an empty catalog on first start.
DEMO_CATALOG: list[dict[str, object]] = [
    {"item_id": "itm_tea_250", "name": "Tata Tea Gold 250g", "selling_price": 145.0, "stock": 40, "tax_rate_percent": 5, "unit": "PCS", "tax_mode": "inclusive", "category": "Beverages", "item_code": "TEA250", "hsn_code": "0902"},
    {"item_id": "itm_coffee_100", "name": "Bru Instant Coffee 100g", "selling_price": 210.0, "stock": 25, "tax_rate_percent": 18, "unit": "PCS", "tax_mode": "inclusive", "category": "Hot Beverages", "item_code": "BRU100", "hsn_code": "2101"},
    {"item_id": "itm_cola_750", "name": "Cola 750ml", "selling_price": 40.0, "stock": 60, "tax_rate_percent": 28, "unit": "BTL", "tax_mode": "inclusive", "category": "Cold Beverages", "item_code": "COLA750", "hsn_code": "2202"},
    {"item_id": "itm_parle_g", "name": "Parle-G Biscuits 250g", "selling_price": 25.0, "stock": 120, "tax_rate_percent": 18, "unit": "PCS", "tax_mode": "inclusive", "category": "Biscuits", "item_code": "PARLEG", "hsn_code": "1905"},
    {"item_id": "itm_chips_52", "name": "Potato Chips Salted 52g", "selling_price": 20.0, "stock": 80, "tax_rate_percent": 12, "unit": "PCS", "tax_mode": "inclusive", "category": "Snacks", "item_code": "CHIPS52", "hsn_code": "2005"},
    {"item_id": "itm_milk_500", "name": "Toned Milk 500ml", "selling_price": 28.0, "stock": 30, "tax_rate_percent": 0, "unit": "PKT", "tax_mode": "exclusive", "category": "Dairy", "item_code": "MILK500", "hsn_code": "0401"},
    {"item_id": "itm_paneer_200", "name": "Fresh Paneer 200g", "selling_price": 90.0, "stock": 12, "tax_rate_percent": 5, "unit": "PKT", "tax_mode": "exclusive", "category": "Dairy", "item_code": "PANEER200", "hsn_code": "0406"},
    {"item_id": "itm_bread", "name": "Brown Bread 400g", "selling_price": 50.0, "stock": 15, "tax_rate_percent": 0, "unit": "PCS", "tax_mode": "exclusive", "category": "Bakery", "item_code": "BREAD400", "hsn_code": "1905"},
    {"item_id": "itm_rice_5kg", "name": "Basmati Rice 5kg", "selling_price": 620.0, "stock": 10, "tax_rate_percent": 5, "unit": "BAG", "tax_mode": "exclusive", "category": "Rice", "item_code": "RICE5", "hsn_code": "1006"},
    {"item_id": "itm_toor_dal_1kg", "name": "Toor Dal 1kg", "selling_price": 165.0, "stock": 20, "tax_rate_percent": 5, "unit": "PKT", "tax_mode": "exclusive", "category": "Pulses", "item_code": "TOOR1", "hsn_code": "0713"},
    {"item_id": "itm_garam_masala", "name": "Garam Masala 100g", "selling_price": 78.0, "stock": 35, "tax_rate_percent": 5, "unit": "PCS", "tax_mode": "inclusive", "category": "Masala", "item_code": "GMASALA", "hsn_code": "0910"},
    {"item_id": "itm_oil_1l", "name": "Sunflower Oil 1L", "selling_price": 155.0, "stock": 18, "tax_rate_percent": 5, "unit": "BTL", "tax_mode": "exclusive", "category": "Oil", "item_code": "SUNOIL1", "hsn_code": "1512"},
    {"item_id": "itm_noodles", "name": "Instant Noodles 70g", "selling_price": 14.0, "stock": 200, "tax_rate_percent": 18, "unit": "PCS", "tax_mode": "inclusive", "category": "Noodles", "item_code": "NOODLE70", "hsn_code": "1902"},
    {"item_id": "itm_eggs_6", "name": "Eggs (6 pack)", "selling_price": 42.0, "stock": 24, "tax_rate_percent": 0, "unit": "BOX", "tax_mode": "exclusive", "category": "Eggs", "item_code": "EGG6", "hsn_code": "0407"},
    {"item_id": "itm_soap", "name": "Bathing Soap 125g", "selling_price": 38.0, "stock": 50, "tax_rate_percent": 18, "unit": "PCS", "tax_mode": "inclusive", "category": "Personal Care", "item_code": "SOAP125", "hsn_code": "3401"},
    {"item_id": "itm_toothpaste", "name": "Toothpaste 150g", "selling_price": 95.0, "stock": 22, "tax_rate_percent": 18, "unit": "PCS", "tax_mode": "inclusive", "category": "Oral Care", "item_code": "PASTE150", "hsn_code": "3306"},
    {"item_id": "itm_detergent_1kg", "name": "Detergent Powder 1kg", "selling_price": 120.0, "stock": 16, "tax_rate_percent": 18, "unit": "PKT", "tax_mode": "inclusive", "category": "Home Care", "item_code": "DET1", "hsn_code": "3402"},
    {"item_id": "itm_notebook", "name": "Ruled Notebook 172pg", "selling_price": 60.0, "stock": 40, "tax_rate_percent": 12, "unit": "PCS", "tax_mode": "exclusive", "category": "Stationery", "item_code": "NB172", "hsn_code": "4820"},
    {"item_id": "itm_pen_blue", "name": "Ball Pen Blue", "selling_price": 10.0, "stock": 150, "tax_rate_percent": 18, "unit": "PCS", "tax_mode": "inclusive", "category": "Pens", "item_code": "PENB", "hsn_code": "9608"},
    {"item_id": "itm_paracetamol", "name": "Paracetamol 500mg (10)", "selling_price": 30.0, "stock": 8, "tax_rate_percent": 12, "unit": "STRIP", "tax_mode": "inclusive", "category": "Medicine", "item_code": "PCM500", "hsn_code": "3004"},
    {"item_id": "itm_diapers_m", "name": "Baby Diapers M (20)", "selling_price": 399.0, "stock": 6, "tax_rate_percent": 12, "unit": "PKT", "tax_mode": "inclusive", "category": "Baby Care", "item_code": "DIAPM", "hsn_code": "9619"},
    {"item_id": "itm_bulb_9w", "name": "LED Bulb 9W", "selling_price": 99.0, "stock": 14, "tax_rate_percent": 12, "unit": "PCS", "tax_mode": "inclusive", "category": "Electrical", "item_code": "LED9", "hsn_code": "8539"},
    {"item_id": "itm_phone_cable", "name": "USB-C Charging Cable", "selling_price": 249.0, "stock": 0, "tax_rate_percent": 18, "unit": "PCS", "tax_mode": "inclusive", "category": "Mobile Accessories", "item_code": "USBC1", "hsn_code": "8544"},
    {"item_id": "itm_dog_food_1kg", "name": "Dog Food Adult 1kg", "selling_price": 280.0, "stock": 5, "tax_rate_percent": 18, "unit": "PKT", "tax_mode": "inclusive", "category": "Pet Food", "item_code": "DOG1", "hsn_code": "2309"},
    {"item_id": "itm_gift_wrap", "name": "Gift Wrap Sheet", "selling_price": 15.0, "stock": 30, "tax_rate_percent": 12, "unit": "PCS", "tax_mode": "inclusive", "category": "Gifts", "item_code": "GWRAP", "hsn_code": "4802"},
]

DEMO_CUSTOMERS: list[dict[str, str]] = [
    {"name": "Anita Deshpande", "phone": "9890011223", "gstin": ""},
    {"name": "Kulkarni Traders", "phone": "9822098765", "gstin": "27AABCK4321L1Z2"},
    {"name": "Reddy Provisions", "phone": "9440012345", "gstin": "36AAGFR5678M1Z9"},
]

# Category name (as typed in the catalog) -> category kind.
CATEGORY_KIND_BY_NAME: dict[str, str] = {
    "Hot Beverages": "beverage",
    "Cold Beverages": "beverage",
    "Beverages": "beverage",
    "Drinks": "beverage",
    "Snacks": "snack",
    "Biscuits": "snack",
    "Chips": "snack",
    "Chocolate": "snack",
    "Desserts": "snack",
    "Fast Food": "food",
    "Main Course": "food",
    "Food": "food",
    "Meat": "food",
    "Fish": "food",
    "Eggs": "dairy",
    "Dairy": "dairy",
    "Bread": "bakery",
    "Bakery": "bakery",
    "Vegetables": "produce",
    "Fruits": "produce",
    "Organic": "produce",
    "Rice": "staples",
    "Dal": "staples",
    "Pulses": "staples",
    "Spices": "staples",
    "Masala": "staples",
    "Oil": "staples",
    "Noodles": "staples",
    "Grocery": "grocery",
    "Groceries": "grocery",
    "Stationery": "stationery",
    "Office Supplies": "stationery",
    "Books": "stationery",
    "Notebooks": "stationery",
    "Pens": "stationery",
    "Cosmetics": "personal_care",
    "Beauty": "personal_care",
    "Personal Care": "personal_care",
    "Skincare": "personal_care",
    "Haircare": "personal_care",
    "Oral Care": "personal_care",
    "Toothpaste": "personal_care",
    "Medicine": "health",
    "Health": "health",
    "Healthcare": "health",
    "Pharmacy": "health",
    "Home Care": "home",
    "Household": "home",
    "Cleaning": "home",
    "Detergent": "home",
    "Laundry": "home",
    "Baby Care": "baby",
    "Baby": "baby",
    "Kids": "baby",
    "Electronics": "electronics",
    "Mobile": "electronics",
    "Accessories": "electronics",
    "Gaming": "electronics",
    "Hardware": "hardware",
    "Tools": "hardware",
    "Electrical": "hardware",
    "Lighting": "hardware",
    "Pets": "pets",
    "Pet Food": "pets",
    "Clothing": "fashion",
    "Apparel": "fashion",
    "Fashion": "fashion",
    "Sports": "sports",
    "Fitness": "sports",
    "Art": "gifts",
    "Crafts": "gifts",
    "Gifts": "gifts",
    "Uncategorized": "general",
    "Others": "general",
    "General": "general",
}

# Checked in order against the lowercased category name.
CATEGORY_KEYWORDS: list[tuple[str, str]] = [
    ("grocery", "grocery"),
    ("stationery", "stationery"),
    ("cosmetic", "personal_care"),
    ("home", "home"),
    ("food", "food"),
    ("beverage", "beverage"),
    ("snack", "snack"),
    ("medicine", "health"),
    ("health", "health"),
    ("baby", "baby"),
    ("electronic", "electronics"),
    ("mobile", "electronics"),
    ("cloth", "fashion"),
    ("pet", "pets"),
    ("sport", "sports"),
    ("gift", "gifts"),
]

# Category kind -> (badge glyph, badge style).
CATEGORY_BADGES: dict[str, tuple[str, str]] = {
    "beverage": ("BEV", "bold #ffffff on #8a4f2a"),
    "snack": ("SNK", "bold #1f1300 on #e0a43a"),
    "food": ("FOD", "bold #ffffff on #b23a48"),
    "dairy": ("DRY", "bold #0b1a2a on #cfe3f5"),
    "bakery": ("BAK", "bold #1f1300 on #d9b27c"),
    "produce": ("PRD", "bold #0b1f0f on #5fbf72"),
    "staples": ("STP", "bold #1f1300 on #c9a227"),
    "grocery": ("GRO", "bold #0b1f0f on #7fcf8a"),
    "stationery": ("STN", "bold #ffffff on #2f6db5"),
    "personal_care": ("PC", "bold #ffffff on #b0478f"),
    "health": ("MED", "bold #ffffff on #c0392b"),
    "home": ("HOM", "bold #ffffff on #4e7a8a"),
    "baby": ("BBY", "bold #1a0f1f on #f3c1dc"),
    "electronics": ("ELC", "bold #ffffff on #3b3f8f"),
    "hardware": ("HW", "bold #ffffff on #5b5b5b"),
    "pets": ("PET", "bold #1f1300 on #d7a86e"),
    "fashion": ("FSH", "bold #ffffff on #7a3fa0"),
    "sports": ("SPT", "bold #ffffff on #1f8a70"),
    "gifts": ("GFT", "bold #ffffff on #d04f6b"),
    "general": ("GEN", "bold #ffffff on #6b6b6b"),
}

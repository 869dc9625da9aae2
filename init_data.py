from trynex import create_app
from trynex.extensions import db
from trynex.models import (
    Admin,
    Category,
    DiscountType,
    Offer,
    Product,
    PromoCode,
    SiteSetting,
)
from datetime import datetime, timedelta
from decimal import Decimal

app = create_app()

with app.app_context():
    # Create initial categories
    categories_data = [
        {"name": "Mugs", "name_bengali": "মগ", "slug": "mugs"},
        {"name": "T-Shirts", "name_bengali": "টি-শার্ট", "slug": "t-shirts"},
        {"name": "Keychains", "name_bengali": "চাবির রিং",
         "slug": "keychains"},
        {"name": "Water Bottles", "name_bengali": "পানির বোতল",
         "slug": "water-bottles"},
        {"name": "Gift for Him", "name_bengali": "তার জন্য উপহার",
         "slug": "gift-for-him"},
        {"name": "Gift for Her", "name_bengali": "তার জন্য উপহার (মেয়ে)",
         "slug": "gift-for-her"},
        {"name": "Personalized Gifts", "name_bengali": "ব্যক্তিগত উপহার",
         "slug": "personalized-gifts"},
        {"name": "Gift Packages", "name_bengali": "গিফট প্যাকেজ",
         "slug": "gift-packages"},
    ]

    for order, cat_data in enumerate(categories_data):
        existing = Category.query.filter_by(slug=cat_data["slug"]).first()
        if not existing:
            db.session.add(Category(
                name=cat_data["name"],
                name_bengali=cat_data["name_bengali"],
                slug=cat_data["slug"],
                sort_order=order,
                is_active=True,
            ))
            print(f"Created category: {cat_data['name']}")

    # Create admin account (if not exists)
    admin_email = app.config["DEFAULT_ADMIN_EMAIL"]
    admin = Admin.query.filter_by(email=admin_email).first()
    if not admin:
        admin = Admin(email=admin_email)
        admin.set_password(app.config["DEFAULT_ADMIN_PASSWORD"])
        db.session.add(admin)
        print(f"Created admin account: {admin_email}")

    products_data = [
        {
            "name": "Premium Ceramic Mug",
            "name_bengali": "প্রিমিয়াম সিরামিক মগ",
            "description": "Custom printed 11oz ceramic mug",
            "price": "550",
            "stock": 120,
            "category": "Mugs",
            "is_featured": True,
            "is_best_selling": True,
        },
        {
            "name": "Magic Color Changing Mug",
            "name_bengali": "ম্যাজিক মগ",
            "description": "Reveals your photo when filled with hot drinks",
            "price": "750",
            "stock": 60,
            "category": "Mugs",
            "is_latest": True,
        },
        {
            "name": "Cotton Custom T-Shirt",
            "name_bengali": "কাস্টম টি-শার্ট",
            "description": "100% cotton t-shirt with your design",
            "price": "650",
            "stock": 200,
            "category": "T-Shirts",
            "is_featured": True,
        },
        {
            "name": "Engraved Metal Keychain",
            "name_bengali": "খোদাই করা চাবির রিং",
            "description": "Stainless steel keychain with name engraving",
            "price": "250",
            "stock": 300,
            "category": "Keychains",
            "is_best_selling": True,
        },
        {
            "name": "Insulated Water Bottle",
            "name_bengali": "ইনসুলেটেড পানির বোতল",
            "description": "750ml steel bottle, keeps drinks hot or cold",
            "price": "1200",
            "stock": 40,
            "category": "Water Bottles",
            "is_latest": True,
        },
        {
            "name": "Couple Gift Hamper",
            "name_bengali": "কাপল গিফট হ্যাম্পার",
            "description": "Two mugs, two keychains and a greeting card",
            "price": "2200",
            "stock": 15,
            "category": "Gift Packages",
            "is_featured": True,
        },
    ]

    for p_data in products_data:
        if Product.query.filter_by(name=p_data["name"]).first():
            continue
        product = Product(
            name=p_data["name"],
            name_bengali=p_data["name_bengali"],
            description=p_data["description"],
            price=Decimal(p_data["price"]),
            stock=p_data["stock"],
            category=p_data["category"],
            is_featured=p_data.get("is_featured", False),
            is_latest=p_data.get("is_latest", False),
            is_best_selling=p_data.get("is_best_selling", False),
            is_active=True,
        )
        db.session.add(product)
        print(f"  Created product: {p_data['name']}")

    if not PromoCode.query.filter_by(code="WELCOME10").first():
        db.session.add(PromoCode(
            code="WELCOME10",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("10"),
            min_order_amount=Decimal("500"),
            max_discount=Decimal("200"),
            usage_limit=500,
            used_count=0,
            is_active=True,
        ))
        print("Created promo code: WELCOME10")

    if not Offer.query.first():
        db.session.add(Offer(
            title="ঈদ স্পেশাল অফার",
            description="সকল কাস্টম মগে ১৫% ছাড়",
            discount_percentage=15,
            expiry=datetime.utcnow() + timedelta(days=30),
            active=True,
        ))
        print("Created offer")

    settings_data = {
        "site_name": ("TryneX Shop", "Storefront name"),
        "site_tagline": ("আপনার পছন্দের গিফট শপ", "Header tagline"),
        "whatsapp_number": ("+8801940689487", "Support WhatsApp number"),
        "facebook_page": ("", "Facebook page URL"),
    }
    for key, (value, description) in settings_data.items():
        if not SiteSetting.query.filter_by(key=key).first():
            db.session.add(SiteSetting(
                key=key, value=value, description=description))

    db.session.commit()
    print("\nData initialization completed!")
    print(f"Admin account: {admin_email}")

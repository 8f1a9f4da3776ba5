"""Demo users, stores and ratings loaded into an empty repository."""
import logging
from datetime import timedelta

from storespark.database import Database
from storespark.schemas import Rating, Role, Store, User, utcnow
from storespark.security import Security

logger = logging.getLogger(__name__)

DEMO_USERS = [
    {"id": "admin1", "name": "Alice Administrator LongNameExample", "email": "admin@example.com",
     "address": "123 Admin St, System City", "role": Role.ADMIN, "password": "AdminPass1!"},
    {"id": "user1", "name": "Bob User Example VeryLongName", "email": "user@example.com",
     "address": "456 User Ave, Normal Town", "role": Role.USER, "password": "UserPass1!"},
    {"id": "storeowner1", "name": "Charlie Owner StoreNameExample", "email": "owner@store.com",
     "address": "789 Store Rd, Shopsville", "role": Role.STORE_OWNER, "password": "OwnerPass1!",
     "store_id": "store1"},
    {"id": "user2", "name": "Diana Another User ExampleName", "email": "diana@example.com",
     "address": "111 Test Blvd, UserVille", "role": Role.USER, "password": "DianaPass1!"},
]

DEMO_STORES = [
    ("store1", "The Grand Market", "contact@grandmarket.com", "100 Main Street, Shopsville", "storeowner1"),
    ("store2", "Corner Goods & Groceries", "info@cornergoods.com", "202 Side Avenue, Normal Town", None),
    ("store3", "Tech Universe Hub", "support@techuniverse.com", "303 Tech Park, System City", None),
    ("store4", "Bloom & Blossom Florist", "flowers@bloom.com", "404 Rose Petal Lane, Garden City", None),
    ("store5", "Gadget Central Emporium", "contact@gadgetcentral.com", "505 Circuit Board Rd, Techville", None),
    ("store6", "The Cozy Corner Bookstore", "reads@cozycorner.com", "606 Page Turner Ave, Library Town", None),
    ("store7", "Fresh Start Bakery & Cafe", "info@freshstartbakery.com", "707 Muffin Top St, Sweetville", None),
    ("store8", "Adventure Gear Outfitters", "gear@adventure.com", "808 Mountain Pass, Summit Peak", None),
    ("store9", "Serene Spa & Wellness", "relax@serenespa.com", "909 Tranquil Path, Calm Waters", None),
    ("store10", "Pawsitively Pets Supplies", "pets@pawsitively.com", "1010 Bark Ave, Animal Kingdom", None),
    ("store11", "Melody Makers Music Shop", "music@melodymakers.com", "1111 Harmony St, Tune Town", None),
    ("store12", "Artisan Alley Crafts", "crafts@artisanalley.com", "1212 Creative Way, Handcraft City", None),
    ("store13", "Gourmet Galaxy Fine Foods", "food@gourmetgalaxy.com", "1313 Flavor Trail, Epicuria", None),
    ("store14", "Vintage Vogue Boutique", "style@vintagevogue.com", "1414 Retro Rd, Fashion Forward", None),
    ("store15", "Green Thumb Garden Center", "plants@greenthumb.com", "1515 Sprout St, Flora Valley", None),
    ("store16", "CyclePro Bike Shop", "bikes@cyclepro.com", "1616 Pedal Path, Velocity Ville", None),
    ("store17", "Home Harmony Decor", "decor@homeharmony.com", "1717 Cozy Ct, Interior City", None),
    ("store18", "The Fitness Hub Gym", "fitness@thehub.com", "1818 Wellness Way, Strongtown", None),
    ("store19", "Global Goods Grocer", "groceries@globalgoods.com", "1919 Market Pl, World Food Center", None),
    ("store20", "QuickFix Auto Repair", "repair@quickfixauto.com", "2020 Wrench Rd, Motorville", None),
    ("store21", "The Board Room Cafe (Games)", "games@boardroom.com", "2121 Dice Roll Dr, Playville", None),
]

# (id, store, user, value, seconds ago)
DEMO_RATINGS = [
    ("rating1", "store1", "user1", 5, 100),
    ("rating2", "store1", "admin1", 4, 200),
    ("rating3", "store2", "user1", 3, 50),
    ("rating4", "store4", "user1", 4, 60),
    ("rating5", "store5", "user2", 5, 70),
    ("rating6", "store1", "user2", 2, 80),
]


def seed_demo_data(db: Database, security: Security) -> bool:
    """Loads the demo records unless the repository already has users."""
    if db.count_users() > 0:
        logger.info("Repository already populated, skipping demo data")
        return False

    for entry in DEMO_USERS:
        data = {k: v for k, v in entry.items() if k != "password"}
        db.insert_user(User(password_hash=security.hash_password(entry["password"]), **data))

    for store_id, name, email, address, owner_id in DEMO_STORES:
        db.insert_store(Store(id=store_id, name=name, email=email, address=address, owner_id=owner_id))

    now = utcnow()
    for rating_id, store_id, user_id, value, ago in DEMO_RATINGS:
        db.insert_rating(Rating(id=rating_id, store_id=store_id, user_id=user_id,
                                value=value, timestamp=now - timedelta(seconds=ago)))

    logger.info("Loaded demo data: %d users, %d stores, %d ratings",
                len(DEMO_USERS), len(DEMO_STORES), len(DEMO_RATINGS))
    return True

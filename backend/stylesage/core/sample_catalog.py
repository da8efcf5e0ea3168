"""Sample Catalog — default categories and demo products used to bootstrap a store.

Invariants:
    - Category slugs are unique and ordered 1..n
    - Every sample product carries a legacy total `stock`, spread over its sizes
      on insert (core/stock.py normalize_stock)
"""

_DEMO = "https://res.cloudinary.com/demo/image/upload/w_800,h_800,c_fit"
_SIZES = ["XS", "S", "M", "L", "XL", "XXL"]

DEFAULT_CATEGORIES: tuple[dict, ...] = (
    {"name": "Collections", "slug": "collections",
     "description": "Our curated collections", "order": 1},
    {"name": "Anime", "slug": "anime",
     "description": "Anime-inspired designs", "order": 2},
    {"name": "Meme", "slug": "meme",
     "description": "Internet meme designs", "order": 3},
    {"name": "Custom", "slug": "custom",
     "description": "Create your own design", "order": 4},
)


def _product(
    name, slug, description, price, images, category, tags, stock,
    *, featured=False, rating=0.0, reviews=0, original_price=None,
    colors=("Black", "White"),
) -> dict:
    return {
        "name": name,
        "slug": slug,
        "description": description,
        "price": price,
        "original_price": original_price,
        "images": [f"{_DEMO}/{image}" for image in images],
        "category": category,
        "tags": list(tags),
        "sizes": list(_SIZES),
        "colors": list(colors),
        "stock": stock,
        "is_featured": featured,
        "rating": rating,
        "reviews": reviews,
    }


SAMPLE_PRODUCTS: tuple[dict, ...] = (
    _product(
        "Naruto Hokage Dreams", "naruto-hokage-dreams",
        "Iconic Naruto design featuring the path to becoming Hokage. "
        "High-quality print on premium cotton blend fabric.",
        48, ["sample.jpg", "woman.jpg"], "anime",
        ["naruto", "hokage", "anime", "manga", "bestseller"], 50,
        featured=True, rating=4.9, reviews=234, original_price=55,
    ),
    _product(
        "Attack on Titan Wings", "attack-on-titan-wings",
        "Survey Corps wings of freedom design. Perfect for AOT fans who fight for humanity.",
        52, ["nature/forest.jpg", "landscape.jpg"], "anime",
        ["attack-on-titan", "aot", "survey-corps", "anime", "new"], 35,
        rating=4.8, reviews=189,
    ),
    _product(
        "Dragon Ball Z Power", "dragon-ball-z-power",
        "Feel the power of the Saiyans with this incredible DBZ design featuring energy auras.",
        50, ["basketball_shot.jpg", "athlete.jpg"], "anime",
        ["dragon-ball-z", "dbz", "saiyan", "goku", "anime"], 42,
        featured=True, rating=4.9, reviews=312,
    ),
    _product(
        "Demon Slayer Breathe", "demon-slayer-breathe",
        "Channel your inner demon slayer with this stunning breathing technique design.",
        49, ["nature/tree.jpg", "leaves.jpg"], "anime",
        ["demon-slayer", "tanjiro", "breathing", "anime", "trending"], 33,
        featured=True, rating=4.8, reviews=203,
    ),
    _product(
        "Custom Design T-Shirt", "custom-design-tshirt",
        "Create your own unique design with our premium custom t-shirt service. "
        "Upload your own image or text.",
        55, ["nature/landscape.jpg", "nature/forest.jpg"], "custom",
        ["custom", "personalized", "design", "unique"], 100,
        featured=True, rating=4.9, reviews=89,
        colors=("White", "Black", "Navy", "Red", "Green", "Blue", "Gray", "Pink"),
    ),
    _product(
        "Distracted Boyfriend Classic", "distracted-boyfriend-classic",
        "The iconic distracted boyfriend meme in premium print. Perfect conversation starter.",
        45, ["couple.jpg"], "meme",
        ["distracted-boyfriend", "classic-meme", "viral", "funny"], 60,
        featured=True, rating=4.8, reviews=456,
    ),
    _product(
        "This is Fine Dog", "this-is-fine-dog",
        "Perfect for when everything is definitely fine. The ultimate comfort meme tee.",
        47, ["dog.jpg"], "meme",
        ["this-is-fine", "dog", "fire", "classic-meme", "bestseller"], 55,
        featured=True, rating=4.9, reviews=623,
    ),
    _product(
        "Surprised Pikachu", "surprised-pikachu",
        "Express your shock and disbelief with the most surprised Pokémon ever.",
        43, ["yellow_tulip.jpg"], "meme",
        ["pikachu", "surprised", "pokemon", "shocked", "classic"], 52,
        featured=True, rating=4.9, reviews=534,
    ),
)

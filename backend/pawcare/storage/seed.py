"""Rows written on first start when the corresponding table is empty."""

DEFAULT_SERVICES = (
    {
        "name": "Pet Sitting",
        "description": (
            "In-home care while you're away. Your pet stays comfortable in their "
            "familiar environment with personalized attention."
        ),
        "price": 45.00,
        "duration_minutes": 60,
    },
    {
        "name": "Dog Walking",
        "description": (
            "Regular exercise and outdoor adventures. Keep your pup happy, healthy, "
            "and well-socialized."
        ),
        "price": 25.00,
        "duration_minutes": 30,
    },
    {
        "name": "Pet Boarding",
        "description": (
            "Safe, comfortable overnight stays. Your pet enjoys a home-like setting "
            "with round-the-clock supervision."
        ),
        "price": 75.00,
        "duration_minutes": 1440,
    },
    {
        "name": "Grooming",
        "description": (
            "Professional grooming services. Keep your pet looking and feeling "
            "their absolute best."
        ),
        "price": 60.00,
        "duration_minutes": 90,
    },
    {
        "name": "Vet Visits",
        "description": (
            "Transportation to appointments. We ensure your pet gets to their vet "
            "visits safely and on time."
        ),
        "price": 35.00,
        "duration_minutes": 120,
    },
    {
        "name": "Training Support",
        "description": (
            "Reinforcement of training routines. We maintain consistency with your "
            "pet's training program."
        ),
        "price": 50.00,
        "duration_minutes": 60,
    },
)

"""
Sample catalog used by the admin seed actions and scripts/seed.py.
"""

SAMPLE_CATEGORIES = [
    {"name": "Animals", "description": "Mammals and other land animals"},
    {"name": "Birds", "description": "Flying and flightless birds"},
]

SAMPLE_CREATURES = [
    {
        "name": "African Lion",
        "scientific_name": "Panthera leo",
        "category": "Animals",
        "description": "The African lion is one of the most iconic animals in the world.",
        "habitat": "African savannas",
        "diet": "Carnivore",
        "lifespan": "10-14 years",
        "conservation_status": "Vulnerable",
        "image_url": "https://images.unsplash.com/photo-1546182990-dffeafbe841d?w=800",
        "fun_facts": "A lion's roar can be heard from 5 miles away!",
    },
    {
        "name": "African Elephant",
        "scientific_name": "Loxodonta africana",
        "category": "Animals",
        "description": "The largest land animal on Earth.",
        "habitat": "Sub-Saharan Africa",
        "diet": "Herbivore",
        "lifespan": "60-70 years",
        "conservation_status": "Vulnerable",
        "image_url": "https://images.unsplash.com/photo-1557050543-4d5f4e07ef46?w=800",
        "fun_facts": "Elephants can't jump!",
    },
    {
        "name": "Giant Panda",
        "scientific_name": "Ailuropoda melanoleuca",
        "category": "Animals",
        "description": "A beloved bear native to China.",
        "habitat": "Mountain forests of China",
        "diet": "Herbivore - bamboo",
        "lifespan": "20 years",
        "conservation_status": "Vulnerable",
        "image_url": "https://images.unsplash.com/photo-1564349683136-77e08dba1ef7?w=800",
        "fun_facts": "Pandas spend 12 hours a day eating!",
    },
    {
        "name": "Bengal Tiger",
        "scientific_name": "Panthera tigris tigris",
        "category": "Animals",
        "description": "The most numerous tiger subspecies.",
        "habitat": "Indian forests",
        "diet": "Carnivore",
        "lifespan": "10-15 years",
        "conservation_status": "Endangered",
        "image_url": "https://images.unsplash.com/photo-1561731216-c3a4d99437d5?w=800",
        "fun_facts": "No two tigers have the same stripes!",
    },
    {
        "name": "Red Fox",
        "scientific_name": "Vulpes vulpes",
        "category": "Animals",
        "description": "The largest of the true foxes.",
        "habitat": "Worldwide",
        "diet": "Omnivore",
        "lifespan": "2-5 years",
        "conservation_status": "Least Concern",
        "image_url": "https://images.unsplash.com/photo-1474511320723-9a56873571b7?w=800",
        "fun_facts": "Foxes can hear mice underground!",
    },
    {
        "name": "Gray Wolf",
        "scientific_name": "Canis lupus",
        "category": "Animals",
        "description": "The largest wild dog family member.",
        "habitat": "Northern Hemisphere",
        "diet": "Carnivore",
        "lifespan": "6-8 years",
        "conservation_status": "Least Concern",
        "image_url": "https://images.unsplash.com/photo-1546182990-dffeafbe841d?w=800",
        "fun_facts": "Wolves can run 40 mph!",
    },
    {
        "name": "Bald Eagle",
        "scientific_name": "Haliaeetus leucocephalus",
        "category": "Birds",
        "description": "The national bird of the United States.",
        "habitat": "North America",
        "diet": "Carnivore - fish",
        "lifespan": "20-30 years",
        "conservation_status": "Least Concern",
        "image_url": "https://images.unsplash.com/photo-1611689342806-0863700ce1e4?w=800",
        "fun_facts": "Eagles can see fish from a mile away!",
    },
    {
        "name": "Peacock",
        "scientific_name": "Pavo cristatus",
        "category": "Birds",
        "description": "Famous for stunning tail feathers.",
        "habitat": "South Asia",
        "diet": "Omnivore",
        "lifespan": "15-20 years",
        "conservation_status": "Least Concern",
        "image_url": "https://images.unsplash.com/photo-1456926631375-92c8ce872def?w=800",
        "fun_facts": "Tail feathers reach 6 feet long!",
    },
    {
        "name": "Atlantic Puffin",
        "scientific_name": "Fratercula arctica",
        "category": "Birds",
        "description": "Colorful seabird of the North Atlantic.",
        "habitat": "North Atlantic",
        "diet": "Carnivore - fish",
        "lifespan": "20-30 years",
        "conservation_status": "Vulnerable",
        "image_url": "https://images.unsplash.com/photo-1591608971362-f08b2a75731a?w=800",
        "fun_facts": "Puffins carry 12 fish at once!",
    },
    {
        "name": "Snowy Owl",
        "scientific_name": "Bubo scandiacus",
        "category": "Birds",
        "description": "Large white Arctic owl.",
        "habitat": "Arctic tundra",
        "diet": "Carnivore",
        "lifespan": "10 years",
        "conservation_status": "Vulnerable",
        "image_url": "https://images.unsplash.com/photo-1579019163248-e7761241d85a?w=800",
        "fun_facts": "Snowy owls hunt during the day!",
    },
    {
        "name": "Hummingbird",
        "scientific_name": "Trochilidae",
        "category": "Birds",
        "description": "The smallest birds in the world.",
        "habitat": "Americas",
        "diet": "Omnivore - nectar",
        "lifespan": "3-5 years",
        "conservation_status": "Varies",
        "image_url": "https://images.unsplash.com/photo-1520808663317-647b476a81b9?w=800",
        "fun_facts": "Wings beat 80 times per second!",
    },
    {
        "name": "Flamingo",
        "scientific_name": "Phoenicopterus",
        "category": "Birds",
        "description": "Famous for pink feathers.",
        "habitat": "Worldwide lagoons",
        "diet": "Omnivore",
        "lifespan": "20-30 years",
        "conservation_status": "Least Concern",
        "image_url": "https://images.unsplash.com/photo-1497206365907-f5e630693df0?w=800",
        "fun_facts": "Born gray, turn pink over time!",
    },
]

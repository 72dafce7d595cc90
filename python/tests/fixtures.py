"""Test fixtures: normalized media payloads.

The payloads mirror what the external API adapters hand to the queue
engine (camelCase keys, `_id` as the external id). The seed script imports
them too, so they are the single source of truth for dev data.
"""

FIXTURE_USERNAME = "alice"

MOVIE_BATMAN = {
    "_id": "414906",
    "title": "The Batman",
    "director": "Matt Reeves",
    "description": "Batman ventures into Gotham City's underworld.",
    "releaseDate": "2022-03-01",
    "posterPath": "/74xTEgt7R36Fpooo50r9T25onhq.jpg",
    "cast": ["Robert Pattinson", "Zoë Kravitz"],
    "genres": ["Crime", "Mystery"],
    "runtime": 177,
}

MOVIE_DUNE = {
    "_id": "438631",
    "title": "Dune",
    "director": "Denis Villeneuve",
    "releaseDate": "2021-09-15",
    "genres": ["Science Fiction"],
    "runtime": 155,
}

MOVIE_ARRIVAL = {"_id": "329865", "title": "Arrival", "releaseDate": "2016-11-10"}

MOVIE_HEAT = {"_id": "949", "title": "Heat", "releaseDate": "1995-12-15"}

TV_SEVERANCE = {
    "_id": "95396",
    "title": "Severance",
    "firstAirDate": "2022-02-17",
    "totalSeasons": 2,
}

ALBUM_BLONDE = {
    "_id": "3mH6qwIy9crq0I9YQbOuDf",
    "title": "Blonde",
    "artist": "Frank Ocean",
    "tracks": ["Nikes", "Ivy", "Pink + White"],
}

BOOK_DUNE = {
    "_id": "B1hSG45JCX4C",
    "title": "Dune",
    "authors": ["Frank Herbert"],
    "pages": 896,
}

GAME_HADES = {
    "_id": "113112",
    "title": "Hades",
    "platforms": ["PC", "Nintendo Switch"],
}

PODCAST_RADIOLAB = {
    "_id": "2hmkzUtix0qTqvtpPcMzEL",
    "title": "Radiolab",
    "publisher": "WNYC Studios",
}

SEED_QUEUE_ITEMS: dict[str, list[dict]] = {
    "Movie": [MOVIE_BATMAN, MOVIE_DUNE],
    "TV": [TV_SEVERANCE],
    "Album": [ALBUM_BLONDE],
    "Book": [BOOK_DUNE],
    "VideoGame": [GAME_HADES],
    "Podcast": [PODCAST_RADIOLAB],
}

from impulse.services.gazetteer_service import load_gazetteer, review_gazetteer
from impulse.services.location_resolver import LocationResolver

gazetteer = load_gazetteer()
resolver = LocationResolver(gazetteer)

print(f"--- Gazetteer Review ({len(gazetteer.locations)} locations) ---")
for issue in review_gazetteer(gazetteer):
    print(f"{issue['location_id']:<14} {issue['issue']}")

print(f"\n--- Name / Alias Round Trip ---")
failures = 0
for location in gazetteer.locations:
    for text in (location.name,) + location.aliases:
        result = resolver.match(text)
        hit = result.location.id if result.location else None
        if hit != location.id:
            failures += 1
            print(f"MISS {text!r}: expected {location.id}, got {hit} ({result.rule})")

print(f"{failures} miss(es)")

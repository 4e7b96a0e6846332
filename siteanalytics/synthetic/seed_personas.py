import json
import sys
import urllib.request

from .personas import bouncer, converter, reader, returning

URL = "http://127.0.0.1:8123/analytics"


def post_one(ev, url=URL):
    data = json.dumps(ev).encode("utf-8")
    req = urllib.request.Request(url, data=data, headers={"Content-Type": "application/json"})
    with urllib.request.urlopen(req) as r:
        return json.loads(r.read())


def main():
    url = sys.argv[1] if len(sys.argv) > 1 else URL
    traffic = []
    traffic += reader()
    traffic += bouncer()
    traffic += converter()
    traffic += returning()
    # /analytics takes one record per request
    for ev in traffic:
        post_one(ev, url)
    print(f"Seeded {len(traffic)} records across 4 personas.")


if __name__ == "__main__":
    main()

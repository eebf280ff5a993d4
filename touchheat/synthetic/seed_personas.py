import argparse, json, urllib.request, uuid

from ..core.config import settings
from ..events import Project
from ..store import RedisStore
from .personas import fat_finger, left_thumb, reader, right_thumb

URL = "http://127.0.0.1:8123/api/ingest"
CH = 50  # same slice size the snippet sends


def post_batch(url, project_id, evlist):
    data = json.dumps({"project_id": project_id, "events": evlist}).encode("utf-8")
    req = urllib.request.Request(url, data=data, headers={"Content-Type": "application/json"})
    with urllib.request.urlopen(req) as r:
        r.read()


def main(argv=None):
    ap = argparse.ArgumentParser(description="Seed synthetic touch sessions into a running TouchHeat API")
    ap.add_argument("--url", default=URL)
    ap.add_argument("--project", default=None, help="existing project id; a demo project is created if omitted")
    ap.add_argument("--sessions", type=int, default=5, help="sessions per persona")
    args = ap.parse_args(argv)

    project_id = args.project
    if project_id is None:
        project_id = str(uuid.uuid4())
        RedisStore.from_url(settings.redis_url).save_project(Project(id=project_id, name="synthetic demo"))
        print(f"Created demo project {project_id}")

    events = []
    for _ in range(args.sessions):
        events += right_thumb()
        events += left_thumb()
        events += fat_finger()
        events += reader()
    for i in range(0, len(events), CH):
        post_batch(args.url, project_id, events[i:i+CH])
    print(f"Seeded {len(events)} events across 4 personas.")


if __name__ == "__main__":
    main()

"""
Locust load scenarios for the join workflow.

Run scenarios:
  locust -f locustfile.py --tags contention   # Race for the last spots
  locust -f locustfile.py --tags churn        # Join/leave with waitlist promotion
  locust -f locustfile.py --tags browse       # Cached listings
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All of the above
"""

import random
import string
from datetime import datetime, timezone, timedelta

from locust import HttpUser, task, between, tag

PASSWORD = "loadtest123"
CONTENTION_CAPACITY = 10

# Shared state
EVENT_IDS = []
CONTENTION_EVENT_ID = None


def random_username():
    return "u_" + "".join(random.choices(string.ascii_lowercase, k=10))


def future_date(days=30):
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


class MemberUser(HttpUser):
    """Registers and logs in a fresh member on start."""

    abstract = True

    def on_start(self):
        username = random_username()
        email = f"{username}@load.test"
        self.client.post("/api/v1/auth/register", json={
            "email": email,
            "username": username,
            "password": PASSWORD,
        })
        resp = self.client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
        if resp.status_code == 200:
            self.headers = {"Authorization": f"Bearer {resp.json()['access_token']}"}
        else:
            self.headers = {}

    def create_event(self, **fields):
        body = {
            "title": f"Pickup game {random.randint(1, 10000)}",
            "sport": random.choice(["football", "basketball", "padel", "running"]),
            "start_date": future_date(random.randint(1, 60)),
            "capacity_max": 20,
        }
        body.update(fields)
        resp = self.client.post("/api/v1/events/", json=body, headers=self.headers)
        if resp.status_code == 201:
            return resp.json()["id"]
        return None


class ContentionUser(MemberUser):
    """
    Many members race for a 10-spot event.

    Run: locust -f locustfile.py --tags contention -u 100 -r 50 --run-time 30s

    Afterwards the event must show capacity_current <= 10 and
    capacity_current == len(participants):
      GET /api/v1/events/<id>
    """

    wait_time = between(0, 0.1)

    def on_start(self):
        super().on_start()
        if self.headers and CONTENTION_EVENT_ID is None:
            event_id = self.create_event(title="Last spots", capacity_max=CONTENTION_CAPACITY)
            if event_id is not None:
                globals()["CONTENTION_EVENT_ID"] = event_id
                print(f"\nCreated contention event {event_id} with {CONTENTION_CAPACITY} spots\n")

    @tag("contention")
    @task
    def join_last_spots(self):
        if CONTENTION_EVENT_ID is None or not self.headers:
            return

        with self.client.post(
            f"/api/v1/events/{CONTENTION_EVENT_ID}/join",
            headers=self.headers,
            name="/api/v1/events/{id}/join [contention]",
            catch_response=True,
        ) as resp:
            # 409 covers full, already joined and exhausted retries
            if resp.status_code in (200, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ChurnUser(MemberUser):
    """
    Members join a small event, queue on the waitlist when it is full, and
    leave again, so every leave exercises waitlist promotion.

    Run: locust -f locustfile.py --tags churn -u 50 -r 10 --run-time 60s
    """

    wait_time = between(0.1, 0.5)

    def on_start(self):
        super().on_start()
        if self.headers and not EVENT_IDS:
            event_id = self.create_event(title="Churn session", capacity_max=5)
            if event_id is not None:
                EVENT_IDS.append(event_id)

    @tag("churn")
    @task(3)
    def join_or_queue(self):
        if not EVENT_IDS or not self.headers:
            return
        event_id = EVENT_IDS[0]

        with self.client.post(
            f"/api/v1/events/{event_id}/join",
            headers=self.headers,
            name="/api/v1/events/{id}/join",
            catch_response=True,
        ) as resp:
            if resp.status_code == 200:
                resp.success()
            elif resp.status_code == 409 and resp.json().get("error") == "CAPACITY_EXCEEDED":
                resp.success()
                self.client.post(
                    f"/api/v1/events/{event_id}/waitlist",
                    headers=self.headers,
                    name="/api/v1/events/{id}/waitlist",
                )
            elif resp.status_code == 409:
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("churn")
    @task(2)
    def leave(self):
        if not EVENT_IDS or not self.headers:
            return

        with self.client.post(
            f"/api/v1/events/{EVENT_IDS[0]}/leave",
            headers=self.headers,
            name="/api/v1/events/{id}/leave",
            catch_response=True,
        ) as resp:
            if resp.status_code in (200, 400, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class BrowseUser(HttpUser):
    """
    Listing throughput. Run once with Redis and once without, then compare
    requests/sec and P95 latency.

    Run: locust -f locustfile.py --tags browse -u 100 -r 20 --run-time 60s
    """

    wait_time = between(0.1, 0.5)

    @tag("browse")
    @task(10)
    def list_events(self):
        sport = random.choice([None, "football", "padel"])
        query = f"?page={random.randint(1, 3)}&page_size=20"
        if sport:
            query += f"&sport={sport}"
        self.client.get(f"/api/v1/events/{query}", name="/api/v1/events/ [cached]")

    @tag("browse")
    @task(3)
    def event_detail(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}", name="/api/v1/events/{id}")

    @tag("browse")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(MemberUser):
    """
    Bad input must produce proper error codes, never a 500.

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s
    """

    wait_time = between(0.5, 1.5)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def join_unknown_event(self):
        with self.client.post(
            "/api/v1/events/999999/join", headers=self.headers, catch_response=True
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def approve_unknown_request(self):
        with self.client.post(
            "/api/v1/events/999999/approve-request/1", headers=self.headers, catch_response=True
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def malformed_join_body(self):
        with self.client.post(
            "/api/v1/events/1/join",
            data="not json at all",
            headers={**self.headers, "Content-Type": "application/json"},
            catch_response=True,
        ) as resp:
            self._expect(resp, (400, 422))

    @tag("edge")
    @task
    def zero_capacity_event(self):
        with self.client.post(
            "/api/v1/events/",
            json={"title": "Empty", "sport": "chess", "start_date": future_date(), "capacity_max": 0},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (422,))

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post("/api/v1/events/1/join", catch_response=True) as resp:
            self._expect(resp, (401,))

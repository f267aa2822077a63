#!/usr/bin/env python3
"""
End-to-end smoke test of a running clinic portal.

Expects the demo data from ``manage.py ensure_test_users``.  Walks the
central and organization realms, books an appointment and drives it through
the lifecycle, then prints a summary.  Exit status is non-zero when any
check fails.
"""
import os
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import requests

BASE_URL = os.getenv("CLINIC_BASE_URL", "http://127.0.0.1:8000")
ORG = os.getenv("CLINIC_ORG", "demo_clinic")

TEST_USERS = {
    "central": {"email": "central@demo.clinic", "password": "123456"},
    "admin": {"email": "admin@demo.clinic", "password": "123456"},
    "doctor": {"email": "doctor@demo.clinic", "password": "123456"},
    "patient": {"email": "patient@demo.clinic", "password": "123456"},
}


@dataclass
class TestResult:
    success: bool
    endpoint: str
    method: str
    status_code: int
    response_time: float
    error_message: str = ""
    description: str = ""
    user_role: str = ""


class UnifiedAPITester:
    def __init__(self):
        self.session = requests.Session()
        self.tokens: Dict[str, str] = {}
        self.test_results: List[TestResult] = []
        self.error_results: List[TestResult] = []

    def call(self, role: str, method: str, endpoint: str, data: Optional[Dict] = None,
             expected_status: int = 200, description: str = "") -> Optional[requests.Response]:
        headers = {"Content-Type": "application/json"}
        if role in self.tokens:
            headers["Authorization"] = f"Bearer {self.tokens[role]}"
        start_time = time.time()
        try:
            response = self.session.request(method, f"{BASE_URL}{endpoint}", json=data, headers=headers)
        except requests.RequestException as e:
            result = TestResult(False, endpoint, method, 0, time.time() - start_time, str(e), description, role)
            print(f"❌ {method} {endpoint} - {e}")
            self.test_results.append(result)
            self.error_results.append(result)
            return None

        response_time = time.time() - start_time
        ok = response.status_code == expected_status
        result = TestResult(
            success=ok,
            endpoint=endpoint,
            method=method,
            status_code=response.status_code,
            response_time=response_time,
            error_message="" if ok else response.text[:200],
            description=description,
            user_role=role,
        )
        self.test_results.append(result)
        if ok:
            print(f"✅ [{role}] {method} {endpoint} ({response_time:.2f}s)")
        else:
            self.error_results.append(result)
            print(f"❌ [{role}] {method} {endpoint} - {response.status_code}, expected {expected_status}")
        return response

    def login(self, role: str) -> bool:
        endpoint = "/auth/login" if role == "central" else f"/{ORG}/auth/login"
        resp = self.call(role, "POST", endpoint, TEST_USERS[role], description=f"{role} login")
        if resp is None or resp.status_code != 200:
            return False
        self.tokens[role] = resp.json()["access"]
        return True

    def run_comprehensive_test(self) -> bool:
        self.call("anonymous", "GET", "/healthz", description="health check")
        self.call("anonymous", "GET", f"/organizations/{ORG}/exists", description="organization lookup")

        for role in TEST_USERS:
            if not self.login(role):
                print(f"⚠️  cannot continue without {role} login")
                return False

        self.call("central", "GET", "/organizations", description="list organizations")
        self.call("central", "GET", "/organizations/count", description="count organizations")
        self.call("central", "GET", f"/{ORG}/auth/me", expected_status=401, description="central token rejected in org")

        doctors = self.call("patient", "GET", f"/{ORG}/doctors", description="list doctors")
        if doctors is None or doctors.status_code != 200 or not doctors.json()["data"]:
            return False
        doctor_id = doctors.json()["data"][0]["id"]

        when = (datetime.now(timezone.utc) + timedelta(days=3)).replace(microsecond=0).isoformat()
        booked = self.call("patient", "POST", f"/{ORG}/appointments",
                           {"doctor_id": doctor_id, "appointment_datetime": when, "notes": "smoke test"},
                           expected_status=201, description="book appointment")
        if booked is None or booked.status_code != 201:
            return False
        appt_id = booked.json()["appointment"]["id"]

        self.call("doctor", "GET", f"/{ORG}/appointments/pending", description="pending appointments")
        self.call("patient", "PUT", f"/{ORG}/appointments/{appt_id}/approve", expected_status=403,
                  description="patient cannot approve")
        self.call("doctor", "PUT", f"/{ORG}/appointments/{appt_id}/approve", description="approve")
        self.call("doctor", "PUT", f"/{ORG}/appointments/{appt_id}/approve", expected_status=409,
                  description="second approve rejected")
        self.call("doctor", "PUT", f"/{ORG}/appointments/{appt_id}/complete", description="complete")
        self.call("patient", "PUT", f"/{ORG}/appointments/{appt_id}/cancel", expected_status=409,
                  description="cancel after completion rejected")
        self.call("patient", "GET", f"/{ORG}/appointments/{appt_id}", description="detail with history")
        self.call("admin", "GET", f"/{ORG}/patients", description="admin lists patients")

        self.print_summary()
        return not self.error_results

    def print_summary(self):
        total = len(self.test_results)
        failed = len(self.error_results)
        print(f"\n📊 {total - failed}/{total} checks passed")
        for r in self.error_results:
            print(f"   [{r.user_role}] {r.method} {r.endpoint}: {r.status_code} {r.error_message}")


def main():
    tester = UnifiedAPITester()
    if tester.run_comprehensive_test():
        print("\n✅ all API checks passed")
        sys.exit(0)
    print(f"\n⚠️  {len(tester.error_results)} API checks failed")
    sys.exit(1)


if __name__ == "__main__":
    main()

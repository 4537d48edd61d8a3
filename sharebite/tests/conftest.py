"""
Test configuration
Fixtures for an in-memory document store, services and an API client
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from ..app import create_app
from ..core.database import DocumentStore
from ..core.security import create_access_token
from ..models.food_item import FoodItemInput
from ..models.user import UserRole
from ..services import AllocationService, FoodItemService, RequestService
from ..services.profile_service import RESTAURANTS_COLLECTION


class FakeClock:
    """Deterministic clock; every reading advances by `step`"""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def store():
    """In-memory document store"""
    db = DocumentStore(":memory:")
    yield db
    db.close()


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def allocation_service(store, clock):
    return AllocationService(store, clock=clock)


@pytest.fixture
def request_service(store, clock, allocation_service):
    return RequestService(store, clock=clock, allocation=allocation_service)


@pytest.fixture
def food_item_service(store, clock):
    return FoodItemService(store, clock=clock)


@pytest.fixture
def restaurant_profile(store):
    """Restaurant A's profile in the profile directory"""
    profile = {
        "restaurantName": "Luigi's Trattoria",
        "address": "12 Market St",
        "city": "Springfield",
        "state": "IL",
        "phone": "555-0100",
        "cuisineType": ["italian"],
    }
    store.set(RESTAURANTS_COLLECTION, "rest_a", profile)
    return {"id": "rest_a", **profile}


@pytest.fixture
def food_input():
    return FoodItemInput(
        title="Pizza Slices",
        description="Margherita and pepperoni slices from lunch service",
        quantity="12",
        expiry_hours=4,
        pickup_instructions="Back door, ask for Luigi",
        allergens=["gluten", "dairy"],
    )


@pytest.fixture
def sample_food_item(food_item_service, restaurant_profile, food_input):
    """A posted food item id"""
    return food_item_service.create_food_item("rest_a", restaurant_profile, food_input)


@pytest.fixture
def app_instance(store):
    return create_app(store)


@pytest.fixture
def client(app_instance):
    return TestClient(app_instance)


def make_headers(user_id: str, name: str, role: UserRole):
    return {"Authorization": f"Bearer {create_access_token(user_id, name, role)}"}


@pytest.fixture
def restaurant_headers(restaurant_profile):
    return make_headers("rest_a", "Luigi's Trattoria", UserRole.RESTAURANT)


@pytest.fixture
def other_restaurant_headers():
    return make_headers("rest_z", "Other Bistro", UserRole.RESTAURANT)


@pytest.fixture
def shelter_headers():
    """Factory: headers for a shelter id"""
    def _headers(shelter_id: str = "shelter_b", name: str = "Hope Shelter"):
        return make_headers(shelter_id, name, UserRole.SHELTER)
    return _headers

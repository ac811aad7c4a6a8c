from datetime import timedelta
from decimal import Decimal

import pytest

from accountapp.actors import Actor
from bookingapp import notifications, states
from bookingapp.exceptions import (
    DuplicateReviewError,
    ForbiddenError,
    NotCompletedError,
    NotFoundError,
    ValidationError,
)
from carsapp.models import Car
from reviewapp.aggregator import RatingAggregator, average_rating
from reviewapp.models import Review

from conftest import at, span


@pytest.fixture
def completed(make_booking):
    """Completed bookings on consecutive, non-overlapping weeks."""
    created = []

    def make(user=None):
        start = at('2023-10-01') + timedelta(days=7 * len(created))
        booking = make_booking(
            span(start.date().isoformat(), (start + timedelta(days=3)).date().isoformat()),
            status=states.COMPLETED,
            user=user,
        )
        created.append(booking)
        return booking
    return make


class TestAverageRating:

    def test_one_decimal_half_up(self):
        assert average_rating(12, 3) == Decimal('4.0')
        assert average_rating(17, 4) == Decimal('4.3')
        assert average_rating(5, 2) == Decimal('2.5')
        assert average_rating(14, 3) == Decimal('4.7')
        assert average_rating(13, 3) == Decimal('4.3')

    def test_no_reviews(self):
        assert average_rating(0, 0) == Decimal('0.0')


@pytest.mark.django_db
class TestAttachReview:

    def test_aggregate_recomputed(self, manager, car, renter, completed):
        for rating in (4, 5, 3):
            manager.attach_review(completed().id, Actor.from_user(renter), rating, 'Great ride')

        car.refresh_from_db()
        assert car.total_ratings == 3
        assert car.average_rating == Decimal('4.0')

        manager.attach_review(completed().id, Actor.from_user(renter), 5)

        car.refresh_from_db()
        assert car.total_ratings == 4
        assert car.average_rating == Decimal('4.3')

    def test_review_fields(self, manager, car, renter, completed):
        booking = completed()

        review = manager.attach_review(booking.id, Actor.from_user(renter), 5, 'Spotless')

        assert review.car_id == car.id
        assert review.user_id == renter.id
        assert review.booking_id == booking.id
        assert review.comment == 'Spotless'

    def test_duplicate_review_leaves_aggregate_unchanged(self, manager, car, renter, completed):
        booking = completed()
        manager.attach_review(booking.id, Actor.from_user(renter), 4)

        with pytest.raises(DuplicateReviewError):
            manager.attach_review(booking.id, Actor.from_user(renter), 1)

        car.refresh_from_db()
        assert car.total_ratings == 1
        assert car.average_rating == Decimal('4.0')
        assert Review.objects.filter(booking=booking).count() == 1

    @pytest.mark.parametrize("status", [states.REQUESTED, states.CONFIRMED, states.ON_DELIVERY_PENDING,
                                        states.CANCELLED, states.NO_SHOW])
    def test_only_completed_bookings(self, manager, renter, make_booking, status):
        booking = make_booking(span('2024-01-10', '2024-01-12'), status=status)

        with pytest.raises(NotCompletedError):
            manager.attach_review(booking.id, Actor.from_user(renter), 5)

    def test_only_the_renter(self, manager, other_renter, completed):
        booking = completed()

        with pytest.raises(ForbiddenError):
            manager.attach_review(booking.id, Actor.from_user(other_renter), 5)

    @pytest.mark.parametrize("rating", [0, 6, 4.5, '5', True, None])
    def test_rating_must_be_one_to_five(self, manager, renter, completed, rating):
        booking = completed()

        with pytest.raises(ValidationError):
            manager.attach_review(booking.id, Actor.from_user(renter), rating)

    def test_unknown_booking(self, manager, renter):
        with pytest.raises(NotFoundError):
            manager.attach_review(8080, Actor.from_user(renter), 5)

    def test_owner_notified(self, manager, notifier, owner, renter, completed,
                            django_capture_on_commit_callbacks):
        booking = completed()

        with django_capture_on_commit_callbacks(execute=True):
            manager.attach_review(booking.id, Actor.from_user(renter), 5)

        notifier.notify.assert_called_once()
        assert notifier.notify.call_args[0][0] == owner.id
        assert notifier.notify.call_args[0][1] == notifications.NEW_REVIEW

    def test_review_after_lifecycle(self, manager, car, owner, renter):
        booking = manager.request_booking(
            car.id, Actor.from_user(renter),
            span('2023-12-02', '2023-12-04'), Decimal('7000.00'),
        )
        manager.transition(booking.id, states.CONFIRM, Actor.from_user(owner))
        manager.transition(booking.id, states.COMPLETE, Actor.from_user(owner))

        manager.attach_review(booking.id, Actor.from_user(renter), 5)

        car.refresh_from_db()
        assert car.total_ratings == 1
        assert car.average_rating == Decimal('5.0')


@pytest.mark.django_db
class TestRatingAggregator:

    def test_recompute_is_full(self, car, renter, completed):
        booking = completed()
        Review.objects.create(car=car, user=renter, booking=booking, rating=2)
        Car.objects.filter(pk=car.pk).update(average_rating=Decimal('5.0'), total_ratings=40)

        RatingAggregator().recompute(car.id)

        car.refresh_from_db()
        assert car.total_ratings == 1
        assert car.average_rating == Decimal('2.0')

    def test_recompute_without_reviews(self, car):
        updated = RatingAggregator().recompute(car.id)

        assert updated.total_ratings == 0
        assert updated.average_rating == Decimal('0.0')

    def test_only_counts_reviews_of_the_car(self, car, owner, renter, completed, make_booking):
        other_car = Car.objects.create(
            owner=owner, title='Subaru Forester', make='Subaru', model='Forester', year=2015,
            price_per_day=Decimal('6000.00'), is_active=True, is_verified=True,
        )
        mine = completed()
        theirs = make_booking(span('2023-10-01', '2023-10-03'), status=states.COMPLETED, booking_car=other_car)
        Review.objects.create(car=car, user=renter, booking=mine, rating=5)
        Review.objects.create(car=other_car, user=renter, booking=theirs, rating=1)

        RatingAggregator().recompute(car.id)

        car.refresh_from_db()
        assert car.total_ratings == 1
        assert car.average_rating == Decimal('5.0')

    def test_recompute_is_logged(self, car, caplog):
        with caplog.at_level('INFO', logger='reviewapp.aggregator'):
            RatingAggregator().recompute(car.id)

        assert f"Recomputed rating for car {car.id}: 0.0 over 0 reviews" in caplog.text

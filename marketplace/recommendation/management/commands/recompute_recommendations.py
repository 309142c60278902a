"""

cd marketplace
python manage.py recompute_recommendations
python manage.py recompute_recommendations --user 3 --user 7
python manage.py recompute_recommendations --workers 4

Meant to be driven by an external scheduler (cron, every 6 hours).
"""

from django.core.management.base import BaseCommand, CommandError
from recommendation.exceptions import RecommendationError
from recommendation.snapshot import recompute_all, recompute_and_store


class Command(BaseCommand):
    help = "Recompute and store the recommendation snapshot for every user (or the given ones)"

    def add_arguments(self, parser):
        parser.add_argument('--user', type=int, action='append', dest='users',
                            help="only this user id; repeat for several users")
        parser.add_argument('--workers', type=int, default=1,
                            help="users processed in parallel during a full sweep")

    def handle(self, *args, **options):
        users = options.get('users')
        workers = options['workers']
        if workers < 1:
            raise CommandError("--workers must be at least 1")

        if users and len(users) == 1:
            try:
                result = recompute_and_store(users[0])
            except RecommendationError as exc:
                raise CommandError(f"Failed for user {users[0]}: {exc}")
            self.stdout.write(self.style.SUCCESS(
                f"Stored {result.count} recommendations for user {users[0]} in {result.duration_ms}ms"
            ))
            return

        result = recompute_all(user_ids=users, workers=workers)
        message = f"Finished: {result.succeeded} successful, {result.failed} failed"
        if result.failed:
            self.stdout.write(self.style.ERROR(message))
        else:
            self.stdout.write(self.style.SUCCESS(message))

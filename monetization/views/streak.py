from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from monetization.exceptions import MonetizationError
from monetization.services import StreakService
from monetization.views.errors import error_response


class StreakCheckInView(APIView):
    """POST /monetization/streaks/<user_id>/check-in: Today's streak check-in."""

    def post(self, request, user_id, *args, **kwargs):
        try:
            result = StreakService().check_in(user_id)
        except MonetizationError as exc:
            return error_response(exc)

        return Response(
            {
                "streak_count": result.streak_count,
                "bonus": str(result.bonus),
                "streak_broken": result.streak_broken,
                "milestone_reached": result.milestone_reached,
            },
            status=status.HTTP_200_OK,
        )

from urllib.parse import urlencode

from django.http import HttpResponseRedirect
from django.urls import reverse
from django.utils.deprecation import MiddlewareMixin

ROOT_PATHS = {"/", "", "/index.html"}


class OrderIdRedirectMiddleware(MiddlewareMixin):
    """
    Stripe sends shoppers back to `/?order_id=<id>`. Forward root-with-order_id
    to the confirmation view, keeping the parameter, so the transitional URL
    does not stay in browser history.
    """

    def process_request(self, request):
        if request.method not in ("GET", "HEAD"):
            return None
        order_id = (request.GET.get("order_id") or "").strip()
        if not order_id or request.path.lower() not in ROOT_PATHS:
            return None
        dest = reverse("order-confirmation") + "?" + urlencode({"order_id": order_id})
        return HttpResponseRedirect(dest)

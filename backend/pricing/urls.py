from django.urls import path

from .views import PriceServiceLinesView

app_name = "pricing"

urlpatterns = [
    path("service-lines/", PriceServiceLinesView.as_view(), name="price-service-lines"),
]

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

# ==============================================================================
# DRF ROUTER
# ==============================================================================
router = DefaultRouter()
router.register(r'tables', views.TableViewSet, basename='table')
router.register(r'reservations', views.ReservationViewSet, basename='reservation')
router.register(r'users', views.CustomUserViewSet, basename='user')

# ==============================================================================
# URL PATTERNS
# ==============================================================================
app_name = 'booking'

urlpatterns = [
    # --------------------------------------------------------------------------
    # FLOOR PLAN
    # --------------------------------------------------------------------------
    path('halls/', views.HallListView.as_view(), name='hall-list'),

    # --------------------------------------------------------------------------
    # TABLES / RESERVATIONS / USERS
    # --------------------------------------------------------------------------
    path('', include(router.urls)),
]

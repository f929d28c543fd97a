from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

# REST API Router
router = DefaultRouter()
router.register(r'records', views.MaintenanceRecordViewSet, basename='record-api')

app_name = 'maintenance'

urlpatterns = [
    # ============================================
    # REST API ENDPOINTS
    # ============================================
    path('api/', include(router.urls)),

    # ============================================
    # QUICK SCANNER
    # ============================================
    path('scanner/', views.ScannerView.as_view(), name='scanner'),
    path('scanner/transitions/', views.transition_list, name='scanner-transitions'),
    path('scanner/transition/', views.select_transition, name='scanner-select-transition'),
    path('scanner/scan/', views.scan, name='scanner-scan'),
    path('scanner/inquire/', views.inquire, name='scanner-inquire'),
    path('scanner/log/', views.scan_log, name='scanner-log'),
    path('scanner/log/clear/', views.clear_scan_log, name='scanner-log-clear'),
]

from django.contrib import admin
from django.urls import path, include
from django.views.generic import RedirectView
from django.contrib.auth.views import LogoutView

admin.site.site_header = "ShopDesk Administration"
admin.site.site_title = "ShopDesk Admin Portal"
admin.site.index_title = "Maintenance"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('logout/', LogoutView.as_view(next_page='/'), name='logout'),

    # Maintenance scanner and API
    path('maintenance/', include('maintenance.urls')),

    path('', RedirectView.as_view(pattern_name='maintenance:scanner', permanent=False)),
]

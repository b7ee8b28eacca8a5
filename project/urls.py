from django.urls import path, include

urlpatterns = [
    path('api/v1/', include('accounts.urls', namespace='accounts')),
    path('api/v1/complaints/', include('complaints.urls', namespace='complaints')),
    path('api/v1/categories/', include('categories.urls', namespace='categories')),
    path('api/v1/statuses/', include('statuses.urls', namespace='statuses')),
]

from django.urls import path
from .views import login, request_magic_link, auth_callback, signout

urlpatterns = [
    path('login/', login, name='auth-login'),
    path('magic-link/', request_magic_link, name='auth-magic-link'),
    path('callback/', auth_callback, name='auth-callback'),
    path('signout/', signout, name='auth-signout'),
]

from django.contrib import admin

from .models import Favorite, FreelancerProfile, ProfileVisit

admin.site.register(FreelancerProfile)
admin.site.register(Favorite)
admin.site.register(ProfileVisit)

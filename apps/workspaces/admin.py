from django.contrib import admin

from .models import Workspace, WorkspaceMember, Team, TeamMember, WorkspaceInvite


class WorkspaceMemberInline(admin.TabularInline):
    model = WorkspaceMember
    extra = 0
    autocomplete_fields = ['user']


class TeamMemberInline(admin.TabularInline):
    model = TeamMember
    extra = 0
    autocomplete_fields = ['user']


@admin.register(Workspace)
class WorkspaceAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner', 'member_count', 'created_at']
    search_fields = ['name', 'owner__email']
    autocomplete_fields = ['owner']
    inlines = [WorkspaceMemberInline]

    @admin.display(description='Members')
    def member_count(self, obj):
        return obj.members.count()


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ['name', 'workspace', 'created_at']
    list_filter = ['workspace']
    search_fields = ['name']
    inlines = [TeamMemberInline]


@admin.register(WorkspaceInvite)
class WorkspaceInviteAdmin(admin.ModelAdmin):
    list_display = ['email', 'workspace', 'role', 'expires_at', 'used_at', 'is_expired']
    list_filter = ['role', 'workspace']
    search_fields = ['email', 'token']
    readonly_fields = ['token', 'used_at', 'created_at']

    @admin.display(boolean=True, description='Expired')
    def is_expired(self, obj):
        return obj.is_expired

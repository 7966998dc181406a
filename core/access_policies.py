# core/access_policies.py

"""
Row-level security policies for the portal tables.

The admin console serves this script so the owner can paste it into the
Supabase SQL editor. The portal's own capability map (core/permissions.py)
mirrors these rules; the database remains the final authority.
"""

ACCESS_POLICIES_SQL = """\
-- Helper: caller's lowercased email and role
create or replace function public.portal_email() returns text
language sql stable as $$
  select lower(coalesce(auth.jwt() ->> 'email', ''))
$$;

create or replace function public.portal_role() returns text
language sql stable security definer as $$
  select role from public.user_permissions where email = public.portal_email()
$$;

create or replace function public.portal_is_admin() returns boolean
language sql stable as $$
  select auth.role() = 'authenticated'
     and coalesce(public.portal_role() in ('admin', 'super_admin'), false)
$$;

alter table public.daily_work_logs enable row level security;
alter table public.market_intelligence enable row level security;
alter table public.user_permissions enable row level security;
alter table public.external_apps enable row level security;
alter table public.site_config enable row level security;

-- daily_work_logs: admins read/update/delete, any signed-in user creates
create policy work_logs_read on public.daily_work_logs
  for select using (public.portal_is_admin());
create policy work_logs_create on public.daily_work_logs
  for insert with check (auth.role() = 'authenticated');
create policy work_logs_update on public.daily_work_logs
  for update using (public.portal_is_admin());
create policy work_logs_delete on public.daily_work_logs
  for delete using (public.portal_is_admin());

-- market_intelligence: admins and employees read all, owners read their own
create policy market_read on public.market_intelligence
  for select using (
    public.portal_is_admin()
    or public.portal_role() = 'employee'
    or user_id = auth.uid()::text
  );
create policy market_create on public.market_intelligence
  for insert with check (auth.role() = 'authenticated');
create policy market_update on public.market_intelligence
  for update using (public.portal_is_admin());
create policy market_delete on public.market_intelligence
  for delete using (public.portal_is_admin());

-- user_permissions: readable when signed in, owner or admin may update
create policy permissions_read on public.user_permissions
  for select using (auth.role() = 'authenticated');
create policy permissions_create on public.user_permissions
  for insert with check (lower(email) = public.portal_email());
create policy permissions_update on public.user_permissions
  for update using (lower(email) = public.portal_email() or public.portal_is_admin());
create policy permissions_delete on public.user_permissions
  for delete using (public.portal_is_admin());

-- external_apps: readable when signed in, admins write
create policy apps_read on public.external_apps
  for select using (auth.role() = 'authenticated');
create policy apps_write on public.external_apps
  for all using (public.portal_is_admin()) with check (public.portal_is_admin());

-- site_config: public read, admins write
create policy site_config_read on public.site_config
  for select using (true);
create policy site_config_write on public.site_config
  for all using (public.portal_is_admin()) with check (public.portal_is_admin());
"""

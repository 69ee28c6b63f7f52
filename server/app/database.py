from contextlib import asynccontextmanager
from typing import Optional

import asyncpg

_pool: Optional[asyncpg.Pool] = None


async def init_pool(database_url: str):
    """Initialize the connection pool."""
    global _pool
    if _pool is None:
        _pool = await asyncpg.create_pool(database_url, min_size=2, max_size=10)
    return _pool


async def get_pool() -> asyncpg.Pool:
    """Get the existing connection pool."""
    global _pool
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool first.")
    return _pool


async def close_pool():
    """Close the connection pool."""
    global _pool
    if _pool:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection():
    """Get a database connection from the pool."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


async def init_db():
    """Create tables if they don't exist."""
    async with get_connection() as conn:
        # Workspaces (tenants)
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS workspaces (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                name VARCHAR(255) NOT NULL,
                created_at TIMESTAMP DEFAULT NOW()
            )
        """)

        # Users table (auth)
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                workspace_id UUID NOT NULL REFERENCES workspaces(id) ON DELETE CASCADE,
                email VARCHAR(255) NOT NULL UNIQUE,
                full_name VARCHAR(255),
                role VARCHAR(30) NOT NULL CHECK (role IN (
                    'admin', 'owner', 'manager', 'superintendent', 'project_manager', 'field'
                )),
                is_active BOOLEAN DEFAULT true,
                created_at TIMESTAMP DEFAULT NOW(),
                updated_at TIMESTAMP DEFAULT NOW()
            )
        """)
        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_users_workspace_id ON users(workspace_id)
        """)

        # Safety incidents (intake + OSHA classification)
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS safety_incidents (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                workspace_id UUID NOT NULL REFERENCES workspaces(id) ON DELETE CASCADE,
                case_number VARCHAR(50),
                source_type VARCHAR(30) CHECK (source_type IN (
                    'project', 'grounds_inspection', 'work_order', 'standalone'
                )),
                source_id UUID,
                incident_date DATE NOT NULL,
                incident_time TIME,
                location_description TEXT NOT NULL,
                what_happened TEXT NOT NULL,
                injured_employee_name VARCHAR(255) NOT NULL,
                injured_employee_job_title VARCHAR(255),
                injury_involved BOOLEAN NOT NULL DEFAULT false,
                injury_icon VARCHAR(30),
                body_part_affected VARCHAR(30),
                witness_name VARCHAR(255),
                witness_contact VARCHAR(255),
                photo_urls JSONB DEFAULT '[]',
                medical_treatment VARCHAR(30),
                physician_name VARCHAR(255),
                facility_name VARCHAR(255),
                is_privacy_case BOOLEAN NOT NULL DEFAULT false,
                is_osha_recordable BOOLEAN,
                incident_classification VARCHAR(30) CHECK (incident_classification IN (
                    'injury', 'illness', 'near_miss', 'first_aid_only', 'property_damage'
                )),
                injury_type VARCHAR(30),
                resulted_in_death BOOLEAN NOT NULL DEFAULT false,
                resulted_in_days_away BOOLEAN NOT NULL DEFAULT false,
                resulted_in_transfer BOOLEAN NOT NULL DEFAULT false,
                resulted_in_other_recordable BOOLEAN NOT NULL DEFAULT false,
                days_away_from_work INTEGER NOT NULL DEFAULT 0 CHECK (days_away_from_work >= 0),
                days_on_job_transfer INTEGER NOT NULL DEFAULT 0 CHECK (days_on_job_transfer >= 0),
                days_on_restriction INTEGER NOT NULL DEFAULT 0 CHECK (days_on_restriction >= 0),
                corrective_actions TEXT,
                corrective_actions_due DATE,
                review_notes TEXT,
                status VARCHAR(30) NOT NULL DEFAULT 'pending_review' CHECK (status IN (
                    'pending_review', 'under_review', 'classified', 'closed'
                )),
                reported_by UUID REFERENCES users(id),
                reported_at TIMESTAMP DEFAULT NOW(),
                reviewed_by UUID REFERENCES users(id),
                reviewed_at TIMESTAMP,
                created_at TIMESTAMP DEFAULT NOW(),
                updated_at TIMESTAMP DEFAULT NOW()
            )
        """)
        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_safety_incidents_workspace_date
            ON safety_incidents(workspace_id, incident_date)
        """)
        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_safety_incidents_status ON safety_incidents(status)
        """)
        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_safety_incidents_reported_by ON safety_incidents(reported_by)
        """)

        # Audit trail for intake, review and classification actions
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS safety_incident_audit_log (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                incident_id UUID REFERENCES safety_incidents(id) ON DELETE SET NULL,
                user_id UUID REFERENCES users(id),
                action VARCHAR(100) NOT NULL,
                details JSONB,
                ip_address VARCHAR(50),
                created_at TIMESTAMP DEFAULT NOW()
            )
        """)
        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_safety_incident_audit_log_incident
            ON safety_incident_audit_log(incident_id)
        """)

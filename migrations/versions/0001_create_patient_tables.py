"""Create patients, medical history and lifestyle tables

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'patients',
        sa.Column('patient_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=False),
        sa.Column('sex', sa.String(length=20), nullable=False),
        sa.Column('phone_number', sa.String(length=20), nullable=True),
        sa.Column('email_address', sa.String(length=255), nullable=True, unique=True),
        sa.Column('preferred_communication', sa.String(length=20), nullable=True),
        sa.Column('socioeconomic_status', sa.String(length=50), nullable=True),
        sa.Column('geographic_location', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_patients_user_id', 'patients', ['user_id'], unique=False)

    op.create_table(
        'patient_medical_history',
        sa.Column('patient_medical_history_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'patient_id',
            sa.Integer(),
            sa.ForeignKey('patients.patient_id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('condition', sa.String(length=255), nullable=False),
        sa.Column('diagnosis_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=255), nullable=False, server_default='Active'),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        'ix_patient_medical_history_patient_id',
        'patient_medical_history',
        ['patient_id'],
        unique=False,
    )

    op.create_table(
        'patient_lifestyle',
        sa.Column('patient_lifestyle_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'patient_id',
            sa.Integer(),
            sa.ForeignKey('patients.patient_id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('lifestyle_factor', sa.String(length=255), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        'ix_patient_lifestyle_patient_id', 'patient_lifestyle', ['patient_id'], unique=False
    )


def downgrade():
    op.drop_index('ix_patient_lifestyle_patient_id', table_name='patient_lifestyle')
    op.drop_table('patient_lifestyle')
    op.drop_index('ix_patient_medical_history_patient_id', table_name='patient_medical_history')
    op.drop_table('patient_medical_history')
    op.drop_index('ix_patients_user_id', table_name='patients')
    op.drop_table('patients')
